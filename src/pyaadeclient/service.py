"""Endpoint-level API for the AADE digital client service."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .codec import (
    decode_client_list,
    decode_response,
    encode_correlation,
    encode_new_declaration,
    encode_update,
)
from .config import AADEConfig
from .const import (
    CANCEL_CLIENT_ENDPOINT,
    CLIENT_CORRELATIONS_ENDPOINT,
    REQUEST_CLIENTS_ENDPOINT,
    SEND_CLIENT_ENDPOINT,
    UPDATE_CLIENT_ENDPOINT,
)
from .exceptions import AADEClientError, ValidationError
from .models import (
    AADEResponse,
    CancelClientParams,
    ClientCorrelationRequest,
    Credentials,
    NewDigitalClientDoc,
    RequestClientsParams,
    RequestClientsResponse,
    UpdateClientRequest,
)
from .transport import TransportClient
from .util import to_list

_LOGGER = logging.getLogger(__name__)


class AADEService:
    """One coroutine per DCL endpoint.

    Each call renders the request with the codec, sends it through the
    transport and decodes the reply. Non-success status codes are returned,
    not raised; transport and protocol failures are logged and re-raised.
    """

    def __init__(self, transport: TransportClient, config: AADEConfig) -> None:
        self._transport = transport
        self._config = config

    @property
    def config(self) -> AADEConfig:
        return self._config

    async def send_client(
        self,
        doc: NewDigitalClientDoc,
        credentials: Credentials | None = None,
    ) -> AADEResponse:
        """Register a new digital client declaration."""
        body = encode_new_declaration(doc)
        try:
            raw = await self._transport.post(SEND_CLIENT_ENDPOINT, body, credentials=credentials)
            return decode_response(raw)
        except AADEClientError as exc:
            _LOGGER.warning("AADE SendClient failed: %s", exc)
            raise

    async def update_client(
        self,
        request: UpdateClientRequest,
        credentials: Credentials | None = None,
    ) -> AADEResponse:
        """Update (and optionally complete) an existing declaration."""
        body = encode_update(request)
        try:
            raw = await self._transport.post(UPDATE_CLIENT_ENDPOINT, body, credentials=credentials)
            return decode_response(raw)
        except AADEClientError as exc:
            _LOGGER.warning("AADE UpdateClient %s failed: %s", request.initial_dcl_id, exc)
            raise

    async def cancel_client(
        self,
        dcl_id: int,
        credentials: Credentials | None = None,
    ) -> AADEResponse:
        """Cancel a declaration by its DCL id."""
        if dcl_id is None:
            raise ValidationError("dcl_id is required to cancel a declaration.")
        params = CancelClientParams(
            dcl_id=dcl_id,
            entity_vat_number=self._config.require_entity_vat_number(),
        )
        try:
            raw = await self._transport.post(
                CANCEL_CLIENT_ENDPOINT,
                params={"DCLID": params.dcl_id, "entityVatNumber": params.entity_vat_number},
                credentials=credentials,
            )
            return decode_response(raw)
        except AADEClientError as exc:
            _LOGGER.warning("AADE CancelClient %s failed: %s", dcl_id, exc)
            raise

    async def request_clients(
        self,
        *,
        dcl_id: int | None = None,
        max_dcl_id: int | None = None,
        continuation_token: str | None = None,
        credentials: Credentials | None = None,
    ) -> RequestClientsResponse:
        """List declarations registered for the configured company."""
        params = RequestClientsParams(
            entity_vat_number=self._config.require_entity_vat_number(),
            dcl_id=dcl_id,
            max_dcl_id=max_dcl_id,
            continuation_token=continuation_token,
        )
        query = {
            "entityVatNumber": params.entity_vat_number,
            "DCLID": params.dcl_id or None,
            "maxdclid": params.max_dcl_id or None,
            "continuationToken": params.continuation_token or None,
        }
        try:
            raw = await self._transport.get(
                REQUEST_CLIENTS_ENDPOINT,
                params=query,
                credentials=credentials,
            )
            return decode_client_list(raw)
        except AADEClientError as exc:
            _LOGGER.warning("AADE RequestClients failed: %s", exc)
            raise

    async def client_correlations(
        self,
        mark: str,
        dcl_ids: int | Iterable[int],
        credentials: Credentials | None = None,
    ) -> AADEResponse:
        """Link declarations to the MARK of the invoice issued for them."""
        if not mark:
            raise ValidationError("Invoice mark is required for a correlation.")
        request = ClientCorrelationRequest(
            entity_vat_number=self._config.require_entity_vat_number(),
            mark=mark,
            correlated_dcl_ids=tuple(to_list(dcl_ids)),
        )
        body = encode_correlation(request)
        try:
            raw = await self._transport.post(
                CLIENT_CORRELATIONS_ENDPOINT,
                body,
                credentials=credentials,
            )
            return decode_response(raw)
        except AADEClientError as exc:
            _LOGGER.warning("AADE ClientCorrelations %s failed: %s", mark, exc)
            raise
