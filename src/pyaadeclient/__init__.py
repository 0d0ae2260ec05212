"""pyAADEClient package."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .client import Client
from .config import AADEConfig
from .exceptions import (
    AADEClientError,
    AuthError,
    ConfigError,
    DomainError,
    NetworkError,
    ProtocolError,
    TransportError,
    ValidationError,
)
from .models import (
    AADEError,
    AADEResponse,
    Credentials,
    Environment,
    InvoiceKind,
    OperationResult,
    RentalContract,
    RequestClientsResponse,
    RequestedClient,
    ResyncError,
    ResyncResult,
    ServiceType,
    StatusCode,
    SubmissionRecord,
    SubmissionStatus,
    SubmitResult,
)
from .orchestrator import SubmissionOrchestrator
from .service import AADEService
from .store import InMemoryStatusStore, JsonFileStatusStore, StatusStore
from .transport import TransportClient

try:
    __version__ = version("pyaadeclient")
except PackageNotFoundError:  # pragma: no cover - not installed
    __version__ = "0.0.0"

__all__ = [
    "AADEClientError",
    "AADEConfig",
    "AADEError",
    "AADEResponse",
    "AADEService",
    "AuthError",
    "Client",
    "ConfigError",
    "Credentials",
    "DomainError",
    "Environment",
    "InMemoryStatusStore",
    "InvoiceKind",
    "JsonFileStatusStore",
    "NetworkError",
    "OperationResult",
    "ProtocolError",
    "RentalContract",
    "RequestClientsResponse",
    "RequestedClient",
    "ResyncError",
    "ResyncResult",
    "ServiceType",
    "StatusCode",
    "StatusStore",
    "SubmissionOrchestrator",
    "SubmissionRecord",
    "SubmissionStatus",
    "SubmitResult",
    "TransportClient",
    "ValidationError",
    "__version__",
]
