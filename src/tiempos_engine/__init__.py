"""Tiempos-Engine: lottery administration backend client with an in-memory emulator."""

from tiempos_engine.client import (
    BackendClient,
    create_client,
    create_emulated_client,
    create_remote_client,
)
from tiempos_engine.common.schemas import ApiError, Result
from tiempos_engine.emulator.store import FixtureStore

__all__ = [
    "BackendClient",
    "create_client",
    "create_emulated_client",
    "create_remote_client",
    "ApiError",
    "Result",
    "FixtureStore",
]
__version__ = "0.1.0"
