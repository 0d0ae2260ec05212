"""Client facade that owns the HTTP session and wires the integration together."""

from __future__ import annotations

import aiohttp

from .config import AADEConfig
from .exceptions import ConfigError
from .orchestrator import SubmissionOrchestrator
from .service import AADEService
from .store import InMemoryStatusStore, StatusStore
from .transport import TransportClient

_DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=30)


class Client:
    """Facade for the AADE service and the submission workflow."""

    def __init__(
        self,
        config: AADEConfig,
        store: StatusStore | None = None,
        session: aiohttp.ClientSession | None = None,
        *,
        timeout: aiohttp.ClientTimeout | None = None,
    ) -> None:
        if config is None:
            raise ConfigError("AADE configuration is required.")
        self._config = config
        self._store = store if store is not None else InMemoryStatusStore()
        self._session = session
        self._owns_session = session is None
        self._timeout = timeout or _DEFAULT_TIMEOUT
        self._service: AADEService | None = None
        self._orchestrator: SubmissionOrchestrator | None = None

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    @property
    def config(self) -> AADEConfig:
        return self._config

    @property
    def store(self) -> StatusStore:
        return self._store

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
        self._service = None
        self._orchestrator = None

    async def get_service(self) -> AADEService:
        if self._service is None:
            transport = TransportClient(
                self._ensure_session(),
                self._config,
                timeout=self._timeout,
            )
            self._service = AADEService(transport, self._config)
        return self._service

    async def get_orchestrator(self) -> SubmissionOrchestrator:
        if self._orchestrator is None:
            service = await self.get_service()
            self._orchestrator = SubmissionOrchestrator(service, self._store, self._config)
        return self._orchestrator

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session
