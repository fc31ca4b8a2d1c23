"""
Backend client factory for Tiempos-Engine.

``create_client`` returns the same ``BackendClient`` surface whether it is
wired to the hosted backend or to the in-memory emulator; the emulator is
selected when no usable backend URL is configured.
"""

import logging
from typing import Any, Optional

import httpx

from tiempos_engine.auth.manager import SessionManager
from tiempos_engine.auth.session import FileSlot, SessionSlot
from tiempos_engine.common.config import DEMO_BACKEND_URL, TiemposSettings, get_settings
from tiempos_engine.emulator.backend import EmulatorBackend
from tiempos_engine.emulator.identity import IdentityGenerator
from tiempos_engine.emulator.latency import LatencyGate
from tiempos_engine.emulator.store import FixtureStore
from tiempos_engine.query.builder import Backend, TableQuery
from tiempos_engine.remote.backend import RemoteAuth, RemoteConnection, RestBackend

logger = logging.getLogger(__name__)


class BackendClient:
    """Table selection plus the auth surface, independent of the backend kind."""

    def __init__(self, backend: Backend, auth: Any, backend_url: str, emulated: bool):
        self.backend = backend
        self.auth = auth
        self.backend_url = backend_url
        self.emulated = emulated

    def from_(self, table: str) -> TableQuery:
        return TableQuery(self.backend, table)

    def table(self, table: str) -> TableQuery:
        return self.from_(table)

    async def close(self) -> None:
        await self.backend.close()

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


def create_emulated_client(
    settings: Optional[TiemposSettings] = None,
    *,
    store: Optional[FixtureStore] = None,
    ids: Optional[IdentityGenerator] = None,
    slot: Optional[SessionSlot] = None,
    gate: Optional[LatencyGate] = None,
) -> BackendClient:
    """Client over the in-memory emulator.

    Without ``settings`` or ``store`` the process-wide store is shared; explicit
    settings get a store of their own, seeded from those settings.
    """
    from tiempos_engine.deps import get_identity_generator, get_store

    ids = ids or get_identity_generator()
    if store is None:
        store = FixtureStore.seeded(settings, ids) if settings is not None else get_store()
    settings = settings or get_settings()
    gate = gate or LatencyGate.from_settings(settings)
    slot = slot or FileSlot(settings.session_store_path)

    auth = SessionManager(slot, gate, storage_key=settings.session_storage_key, ids=ids)
    return BackendClient(
        EmulatorBackend(store, gate, ids),
        auth,
        backend_url=DEMO_BACKEND_URL,
        emulated=True,
    )


def create_remote_client(
    settings: TiemposSettings,
    *,
    slot: Optional[SessionSlot] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> BackendClient:
    """Client forwarding every call to the hosted backend."""
    connection = RemoteConnection(
        settings.backend_url,
        settings.anon_key,
        slot or FileSlot(settings.session_store_path),
        settings.session_storage_key,
        timeout=settings.request_timeout,
        transport=transport,
    )
    return BackendClient(
        RestBackend(connection),
        RemoteAuth(connection),
        backend_url=connection.base_url,
        emulated=False,
    )


def create_client(settings: Optional[TiemposSettings] = None, **kwargs: Any) -> BackendClient:
    """Emulator when the backend URL is absent, placeholder or the demo sentinel."""
    resolved = settings or get_settings()
    if resolved.use_emulator:
        logger.warning(
            "Running in DEMO MODE (no valid backend URL); using in-memory fixtures"
        )
        return create_emulated_client(settings, **kwargs)
    return create_remote_client(resolved, **kwargs)
