"""Contract-level submission workflow for AADE rental declarations."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from .config import AADEConfig
from .const import COMPLETION_COMMENT, NOT_CONFIGURED_NOTE, RENTAL_COMMENT
from .exceptions import AADEClientError, DomainError, ProtocolError, ValidationError
from .models import (
    InvoiceKind,
    NewDigitalClientDoc,
    Number,
    OperationResult,
    RentalContract,
    RentalDetails,
    ResyncError,
    ResyncResult,
    ServiceType,
    SubmissionStatus,
    SubmitResult,
    UpdateClientRequest,
)
from .service import AADEService
from .store import StatusStore
from .util import format_utc_timestamp, is_valid_vat_number, split_make_model

_LOGGER = logging.getLogger(__name__)

INVALID_VAT_ERROR = "Invalid customer VAT number format (9 digits required)."
IN_FLIGHT_ERROR = "A submission for this contract is already in progress."
UNKNOWN_ERROR = "Unknown error"
STATUS_WRITE_FAILED_NOTE = "AADE accepted the request but the status update failed: {error}"

_RESUBMITTABLE = (SubmissionStatus.NONE, SubmissionStatus.PENDING)
_BLOCKS_SUBMIT = (
    SubmissionStatus.SUBMITTED,
    SubmissionStatus.COMPLETED,
    SubmissionStatus.CANCELLED,
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _describe(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


def _write_note(write_error: str | None) -> str | None:
    if write_error is None:
        return None
    return STATUS_WRITE_FAILED_NOTE.format(error=write_error)


class SubmissionOrchestrator:
    """Submit, complete, cancel and correlate declarations for contracts.

    Every public coroutine returns a result object instead of raising. The
    remote outcome decides what is written to the status store, and the write
    happens after the remote call; there is no transaction spanning both, so a
    crash in between leaves the record behind the authority's state until the
    next manual retry or :meth:`resync_pending` run.

    Submission is advisory: without a complete configuration the operations
    succeed with a note instead of blocking the caller's own write path.
    """

    def __init__(
        self,
        service: AADEService,
        store: StatusStore,
        config: AADEConfig | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._service = service
        self._store = store
        self._config = config if config is not None else service.config
        self._clock = clock or _utcnow
        self._in_flight: set[str] = set()

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    def check_submittable(self, contract: RentalContract) -> str | None:
        """Return why ``contract`` cannot be submitted, or None when it can."""
        if not self.is_configured:
            return "AADE is not configured."
        if not is_valid_vat_number(contract.customer_vat_number):
            return INVALID_VAT_ERROR
        if not contract.license_plate or not contract.license_plate.strip():
            return "A vehicle plate number is required."
        if contract.pickup_at is None:
            return "A pickup date is required."
        return None

    def build_declaration(self, contract: RentalContract) -> NewDigitalClientDoc:
        """Map ``contract`` to the SendClient document for a rental."""
        plate = (contract.license_plate or "").strip()
        if not plate:
            raise ValidationError("A vehicle plate number is required.")
        # Both raise ValidationError for naive datetimes.
        format_utc_timestamp(contract.pickup_at)
        if contract.dropoff_at is not None:
            format_utc_timestamp(contract.dropoff_at)
        brand, model = split_make_model(contract.make_model)
        return NewDigitalClientDoc(
            client_service_type=ServiceType.RENTAL,
            entity_vat_number=self._config.require_entity_vat_number(),
            customer_vat_number=contract.customer_vat_number,
            branch=contract.branch,
            comments=RENTAL_COMMENT.format(plate=plate),
            rental_details=RentalDetails(
                vehicle_plate_number=plate,
                vehicle_brand=brand,
                vehicle_model=model,
                vehicle_year=contract.vehicle_year,
                start_date_time=contract.pickup_at,
                estimated_end_date_time=contract.dropoff_at,
                start_km=contract.start_km,
                estimated_total_amount=contract.total_cost,
            ),
        )

    async def submit(self, contract_id: str, contract: RentalContract) -> SubmitResult:
        """Declare a new rental for ``contract_id``."""
        if not self.is_configured:
            _LOGGER.warning(
                "AADE not configured (missing %s), skipping submission for %s",
                ", ".join(self._config.missing_fields()),
                contract_id,
            )
            return SubmitResult(success=True, note=NOT_CONFIGURED_NOTE)
        if not is_valid_vat_number(contract.customer_vat_number):
            return SubmitResult(success=False, error=INVALID_VAT_ERROR)
        if contract_id in self._in_flight:
            return SubmitResult(success=False, error=IN_FLIGHT_ERROR)

        self._in_flight.add(contract_id)
        try:
            return await self._submit(contract_id, contract)
        finally:
            self._in_flight.discard(contract_id)

    async def _submit(self, contract_id: str, contract: RentalContract) -> SubmitResult:
        _LOGGER.debug("Submission for contract %s started", contract_id)
        try:
            record = await self._store.get(contract_id)
        except Exception as exc:
            _LOGGER.error("Status lookup for contract %s failed", contract_id, exc_info=exc)
            return SubmitResult(success=False, error=_describe(exc))
        if record is not None and record.status in _BLOCKS_SUBMIT:
            return SubmitResult(
                success=False,
                remote_id=record.remote_id,
                error=f"Declaration is already {record.status.value}.",
            )
        try:
            doc = self.build_declaration(contract)
        except ValidationError as exc:
            return SubmitResult(success=False, error=_describe(exc))

        write_error = await self._write(
            contract_id,
            {"status": SubmissionStatus.PENDING, "declaration": contract},
        )
        if write_error is not None:
            return SubmitResult(success=False, error=write_error)
        try:
            response = await self._service.send_client(doc)
            response.raise_for_status()
            if response.new_client_dcl_id is None:
                raise ProtocolError("AADE response did not include newClientDclID.")
        except Exception as exc:
            message = await self._record_failure(
                "submission",
                contract_id,
                exc,
                status=SubmissionStatus.ERROR,
            )
            return SubmitResult(success=False, error=message)

        now = self._clock()
        write_error = await self._write(
            contract_id,
            {
                "status": SubmissionStatus.SUBMITTED,
                "remote_id": response.new_client_dcl_id,
                "error_text": None,
                "submitted_at": now,
                "updated_at": now,
            },
        )
        _LOGGER.debug(
            "Submission for contract %s completed with DCL id %s",
            contract_id,
            response.new_client_dcl_id,
        )
        return SubmitResult(
            success=True,
            remote_id=response.new_client_dcl_id,
            note=_write_note(write_error),
        )

    async def complete(
        self,
        contract_id: str,
        remote_id: int | None,
        final_amount: Number,
        end_km: int | None,
        completion_time: datetime,
        invoice_kind: InvoiceKind | int = InvoiceKind.RECEIPT,
    ) -> OperationResult:
        """Close a declaration when the rental ends."""
        if not self.is_configured:
            return OperationResult(success=True, note=NOT_CONFIGURED_NOTE)
        if remote_id is None:
            return OperationResult(success=False, error="No AADE DCL id to complete.")
        blocked = await self._terminal_error(contract_id)
        if blocked is not None:
            return blocked
        try:
            format_utc_timestamp(completion_time)
            request = UpdateClientRequest(
                initial_dcl_id=remote_id,
                client_service_type=ServiceType.RENTAL,
                amount=final_amount,
                completion_date_time=completion_time,
                invoice_kind=InvoiceKind(invoice_kind),
                comments=COMPLETION_COMMENT,
                end_km=end_km,
                actual_end_date_time=completion_time,
            )
        except (ValidationError, ValueError) as exc:
            return OperationResult(success=False, error=_describe(exc))

        _LOGGER.debug("Completion for contract %s started", contract_id)
        try:
            response = await self._service.update_client(request)
            response.raise_for_status()
        except Exception as exc:
            message = await self._record_failure(
                "completion",
                contract_id,
                exc,
                status=SubmissionStatus.ERROR,
            )
            return OperationResult(success=False, error=message)

        write_error = await self._write(
            contract_id,
            {
                "status": SubmissionStatus.COMPLETED,
                "remote_id": remote_id,
                "error_text": None,
                "updated_at": self._clock(),
            },
        )
        _LOGGER.debug("Completion for contract %s completed", contract_id)
        return OperationResult(success=True, note=_write_note(write_error))

    async def cancel(self, contract_id: str, remote_id: int | None) -> OperationResult:
        """Cancel the declaration registered under ``remote_id``."""
        if not self.is_configured:
            return OperationResult(success=True, note=NOT_CONFIGURED_NOTE)
        if remote_id is None:
            return OperationResult(success=False, error="No AADE DCL id to cancel.")
        blocked = await self._terminal_error(contract_id)
        if blocked is not None:
            return blocked

        _LOGGER.debug("Cancellation for contract %s started", contract_id)
        try:
            response = await self._service.cancel_client(remote_id)
            response.raise_for_status()
        except Exception as exc:
            message = await self._record_failure("cancellation", contract_id, exc)
            return OperationResult(success=False, error=message)

        write_error = await self._write(
            contract_id,
            {
                "status": SubmissionStatus.CANCELLED,
                "remote_id": remote_id,
                "error_text": None,
                "updated_at": self._clock(),
            },
        )
        _LOGGER.debug("Cancellation for contract %s completed", contract_id)
        return OperationResult(success=True, note=_write_note(write_error))

    async def correlate_with_invoice(
        self,
        contract_id: str,
        remote_id: int | None,
        invoice_mark: str,
    ) -> OperationResult:
        """Link the declaration to the MARK of the invoice issued for it."""
        if not self.is_configured:
            return OperationResult(success=True, note=NOT_CONFIGURED_NOTE)
        if remote_id is None:
            return OperationResult(success=False, error="No AADE DCL id to correlate.")
        if not invoice_mark:
            return OperationResult(success=False, error="An invoice mark is required.")

        _LOGGER.debug("Correlation for contract %s started", contract_id)
        try:
            response = await self._service.client_correlations(invoice_mark, remote_id)
            response.raise_for_status()
        except Exception as exc:
            self._log_failure("correlation", contract_id, exc)
            return OperationResult(success=False, error=_describe(exc))

        write_error = await self._write(
            contract_id,
            {"invoice_mark": invoice_mark, "updated_at": self._clock()},
        )
        _LOGGER.debug("Correlation for contract %s completed", contract_id)
        return OperationResult(success=True, note=_write_note(write_error))

    async def resync_pending(self) -> ResyncResult:
        """Resubmit every record still in ``none`` or ``pending``.

        Records are processed one at a time. A failure on one record never
        stops the rest; a record may be submitted more than once if an
        earlier status write was lost after AADE accepted it.
        """
        if not self.is_configured:
            _LOGGER.warning("AADE not configured, skipping resync of pending declarations")
            return ResyncResult(success_count=0, error_count=0)

        try:
            records = await self._store.query_by_status(_RESUBMITTABLE)
        except Exception as exc:
            _LOGGER.error("Loading pending declarations failed", exc_info=exc)
            return ResyncResult(success_count=0, error_count=0, error=_describe(exc))
        _LOGGER.debug("Resync started for %d record(s)", len(records))
        success_count = 0
        errors: list[ResyncError] = []
        for record in records:
            if record.declaration is None:
                result = SubmitResult(
                    success=False,
                    error="No declaration data stored for this contract.",
                )
            else:
                try:
                    result = await self.submit(record.contract_id, record.declaration)
                except Exception as exc:
                    _LOGGER.error(
                        "Resync of contract %s failed",
                        record.contract_id,
                        exc_info=exc,
                    )
                    result = SubmitResult(success=False, error=_describe(exc))
            if result.success:
                success_count += 1
            else:
                errors.append(
                    ResyncError(contract_id=record.contract_id, error=result.error or UNKNOWN_ERROR)
                )
        _LOGGER.debug(
            "Resync completed: %d submitted, %d failed",
            success_count,
            len(errors),
        )
        return ResyncResult(success_count=success_count, error_count=len(errors), errors=errors)

    async def _terminal_error(self, contract_id: str) -> OperationResult | None:
        try:
            record = await self._store.get(contract_id)
        except Exception as exc:
            _LOGGER.error("Status lookup for contract %s failed", contract_id, exc_info=exc)
            return OperationResult(success=False, error=_describe(exc))
        if record is not None and record.status.is_terminal:
            return OperationResult(
                success=False,
                error=f"Declaration is already {record.status.value}.",
            )
        return None

    def _log_failure(self, operation: str, contract_id: str, exc: Exception) -> None:
        if isinstance(exc, DomainError):
            _LOGGER.warning(
                "AADE rejected %s for contract %s (%s): %s",
                operation,
                contract_id,
                exc.status_code,
                exc,
            )
        elif isinstance(exc, AADEClientError):
            _LOGGER.warning("AADE %s for contract %s failed: %s", operation, contract_id, exc)
        else:
            _LOGGER.error(
                "Unexpected error during %s for contract %s",
                operation,
                contract_id,
                exc_info=exc,
            )

    async def _write(self, contract_id: str, fields: Mapping[str, Any]) -> str | None:
        """Apply ``fields`` to the record; return the error text if the store fails."""
        try:
            await self._store.upsert(contract_id, fields)
        except Exception as exc:
            _LOGGER.error("Status update for contract %s failed", contract_id, exc_info=exc)
            return _describe(exc)
        return None

    async def _record_failure(
        self,
        operation: str,
        contract_id: str,
        exc: Exception,
        *,
        status: SubmissionStatus | None = None,
    ) -> str:
        self._log_failure(operation, contract_id, exc)
        message = _describe(exc)
        fields: dict[str, Any] = {"error_text": message, "updated_at": self._clock()}
        if status is not None:
            fields["status"] = status
        await self._write(contract_id, fields)
        return message
