"""Authenticated HTTP transport for the AADE digital client API."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from .config import AADEConfig
from .const import (
    CONTENT_TYPE_HEADER,
    DEFAULT_HEADERS,
    SUBSCRIPTION_KEY_HEADER,
    USER_ID_HEADER,
    XML_CONTENT_TYPE,
)
from .exceptions import AuthError, ConfigError, NetworkError, TransportError, ValidationError
from .models import Credentials

_LOGGER = logging.getLogger(__name__)
_DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=30)


class TransportClient:
    """Send XML requests to the environment selected by the configuration.

    There is no retry or backoff here; retries are driven by the caller.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        config: AADEConfig,
        *,
        timeout: aiohttp.ClientTimeout | None = None,
    ) -> None:
        if session is None:
            raise ValidationError("Session is required.")
        if config is None:
            raise ConfigError("AADE configuration is required.")
        self._session = session
        self._config = config
        self._timeout = timeout or _DEFAULT_TIMEOUT

    @property
    def base_url(self) -> str:
        return self._config.base_url

    async def post(
        self,
        path: str,
        body: str | None = None,
        *,
        params: Mapping[str, Any] | None = None,
        credentials: Credentials | None = None,
    ) -> str:
        data = body.encode("utf-8") if body is not None else None
        return await self._request("POST", path, data=data, params=params, credentials=credentials)

    async def get(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        credentials: Credentials | None = None,
    ) -> str:
        return await self._request("GET", path, data=None, params=params, credentials=credentials)

    def _build_url(self, path: str) -> str:
        if not isinstance(path, str) or not path:
            raise ValidationError("Path must be a non-empty string.")
        if path.startswith("http://") or path.startswith("https://"):
            raise ValidationError("Use relative paths when building AADE requests.")
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _build_headers(self, credentials: Credentials | None) -> dict[str, str]:
        resolved = credentials if credentials is not None else self._config.credentials
        if resolved is None or not resolved.user_id or not resolved.subscription_key:
            raise ConfigError(
                "AADE credentials not provided. Configure them or pass credentials."
            )
        return {
            **DEFAULT_HEADERS,
            USER_ID_HEADER: resolved.user_id,
            SUBSCRIPTION_KEY_HEADER: resolved.subscription_key,
            CONTENT_TYPE_HEADER: XML_CONTENT_TYPE,
        }

    def _build_params(self, params: Mapping[str, Any] | None) -> dict[str, str] | None:
        if not params:
            return None
        return {key: str(value) for key, value in params.items() if value is not None}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        data: bytes | None,
        params: Mapping[str, Any] | None,
        credentials: Credentials | None,
    ) -> str:
        headers = self._build_headers(credentials)
        url = self._build_url(path)
        _LOGGER.debug("AADE %s %s started", method, path)
        try:
            async with self._session.request(
                method,
                url,
                headers=headers,
                params=self._build_params(params),
                data=data,
                timeout=self._timeout,
                ssl=True,
            ) as response:
                self._raise_for_status(response)
                text = await response.text()
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise NetworkError(f"Network request failed: {exc}") from exc
        _LOGGER.debug("AADE %s %s completed", method, path)
        return text

    def _raise_for_status(self, response: aiohttp.ClientResponse) -> None:
        if 200 <= response.status < 300:
            return
        reason = response.reason or ""
        message = f"HTTP {response.status}: {reason}".rstrip(": ")
        if response.status in (401, 403):
            raise AuthError(message, status=response.status, reason=reason)
        raise TransportError(message, status=response.status, reason=reason)
