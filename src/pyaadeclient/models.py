"""Public data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import IntEnum, StrEnum

from .exceptions import DomainError

Number = int | float | Decimal


class Environment(StrEnum):
    PRODUCTION = "production"
    DEVELOPMENT = "development"


class ServiceType(IntEnum):
    RENTAL = 1
    PARKING_OR_WASH = 2
    GARAGE = 3


class InvoiceKind(IntEnum):
    RECEIPT = 1
    INVOICE = 2


class StatusCode(StrEnum):
    SUCCESS = "Success"
    XML_SYNTAX_ERROR = "XMLSyntaxError"
    VALIDATION_ERROR = "ValidationError"
    TECHNICAL_ERROR = "TechnicalError"


class SubmissionStatus(StrEnum):
    NONE = "none"
    PENDING = "pending"
    SUBMITTED = "submitted"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (SubmissionStatus.COMPLETED, SubmissionStatus.CANCELLED)


@dataclass(frozen=True, slots=True)
class Credentials:
    user_id: str
    subscription_key: str


@dataclass(frozen=True, slots=True)
class RentalDetails:
    vehicle_plate_number: str
    start_date_time: datetime
    vehicle_brand: str | None = None
    vehicle_model: str | None = None
    vehicle_year: int | None = None
    estimated_end_date_time: datetime | None = None
    start_km: int | None = None
    estimated_total_amount: Number | None = None


@dataclass(frozen=True, slots=True)
class NewDigitalClientDoc:
    client_service_type: ServiceType
    entity_vat_number: str
    customer_vat_number: str
    branch: int | None = None
    comments: str | None = None
    rental_details: RentalDetails | None = None


@dataclass(frozen=True, slots=True)
class UpdateClientRequest:
    initial_dcl_id: int
    client_service_type: ServiceType
    amount: Number | None = None
    completion_date_time: datetime | None = None
    invoice_kind: InvoiceKind | None = None
    comments: str | None = None
    end_km: int | None = None
    actual_end_date_time: datetime | None = None


@dataclass(frozen=True, slots=True)
class CancelClientParams:
    dcl_id: int
    entity_vat_number: str


@dataclass(frozen=True, slots=True)
class RequestClientsParams:
    entity_vat_number: str
    dcl_id: int | None = None
    max_dcl_id: int | None = None
    continuation_token: str | None = None


@dataclass(frozen=True, slots=True)
class ClientCorrelationRequest:
    entity_vat_number: str
    mark: str
    correlated_dcl_ids: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class AADEError:
    code: str
    message: str


@dataclass(frozen=True, slots=True)
class AADEResponse:
    """Decoded ``ResponseDoc`` envelope.

    Exactly one of the id fields is set on success, depending on the
    operation that produced the response.
    """

    status_code: StatusCode
    errors: list[AADEError] = field(default_factory=list)
    new_client_dcl_id: int | None = None
    updated_client_dcl_id: int | None = None
    cancellation_id: int | None = None

    @property
    def is_success(self) -> bool:
        return self.status_code is StatusCode.SUCCESS

    @property
    def error_message(self) -> str:
        messages = [error.message for error in self.errors if error.message]
        if messages:
            return ", ".join(messages)
        return f"AADE returned {self.status_code.value}."

    def raise_for_status(self) -> None:
        if self.is_success:
            return
        raise DomainError(
            self.error_message,
            status_code=self.status_code.value,
            errors=self.errors,
        )


@dataclass(frozen=True, slots=True)
class RequestedClient:
    id_dcl: int
    client_service_type: ServiceType | None
    entity_vat_number: str | None
    customer_vat_number: str | None
    created_at: str | None = None
    updated_at: str | None = None
    cancelled_at: str | None = None
    amount: Number | None = None
    invoice_mark: str | None = None


@dataclass(frozen=True, slots=True)
class RequestClientsResponse:
    entity_vat_number: str | None
    clients: list[RequestedClient]
    continuation_token: str | None = None


@dataclass(frozen=True, slots=True)
class RentalContract:
    """Contract data needed to declare a rental."""

    customer_vat_number: str
    license_plate: str
    make_model: str
    pickup_at: datetime
    dropoff_at: datetime | None = None
    vehicle_year: int | None = None
    start_km: int | None = None
    total_cost: Number | None = None
    branch: int | None = None


@dataclass(frozen=True, slots=True)
class SubmissionRecord:
    contract_id: str
    status: SubmissionStatus = SubmissionStatus.NONE
    remote_id: int | None = None
    error_text: str | None = None
    invoice_mark: str | None = None
    submitted_at: datetime | None = None
    updated_at: datetime | None = None
    declaration: RentalContract | None = None


@dataclass(frozen=True, slots=True)
class SubmitResult:
    success: bool
    remote_id: int | None = None
    error: str | None = None
    note: str | None = None


@dataclass(frozen=True, slots=True)
class OperationResult:
    success: bool
    error: str | None = None
    note: str | None = None


@dataclass(frozen=True, slots=True)
class ResyncError:
    contract_id: str
    error: str


@dataclass(frozen=True, slots=True)
class ResyncResult:
    success_count: int
    error_count: int
    errors: list[ResyncError] = field(default_factory=list)
    error: str | None = None
