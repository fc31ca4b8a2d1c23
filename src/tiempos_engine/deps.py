"""Process-wide singletons for Tiempos-Engine."""

from tiempos_engine.common.config import get_settings
from tiempos_engine.emulator.identity import IdentityGenerator, SystemIdentityGenerator
from tiempos_engine.emulator.store import FixtureStore

_ids: IdentityGenerator | None = None
_store: FixtureStore | None = None


def get_identity_generator() -> IdentityGenerator:
    global _ids
    if _ids is None:
        _ids = SystemIdentityGenerator()
    return _ids


def get_store() -> FixtureStore:
    """The emulator's store, seeded once on first use."""
    global _store
    if _store is None:
        _store = FixtureStore.seeded(get_settings(), get_identity_generator())
    return _store


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _ids, _store
    _ids = None
    _store = None
