"""Shared test fixtures for Tiempos-Engine."""

import pytest

from tiempos_engine.auth.session import MemorySlot
from tiempos_engine.client import create_emulated_client
from tiempos_engine.common.config import TiemposSettings
from tiempos_engine.emulator.identity import SequentialIdentityGenerator
from tiempos_engine.emulator.latency import LatencyGate
from tiempos_engine.emulator.store import FixtureStore

USERS_PER_ROLE = 10


@pytest.fixture
def settings():
    return TiemposSettings(
        backend_url="",
        latency_scale=0.0,
        seed_rng=1234,
        seed_users_per_role=USERS_PER_ROLE,
    )


@pytest.fixture
def ids():
    return SequentialIdentityGenerator()


@pytest.fixture
def store(settings, ids):
    return FixtureStore.seeded(settings, ids)


@pytest.fixture
def slot():
    return MemorySlot()


@pytest.fixture
def gate():
    return LatencyGate(scale=0.0)


@pytest.fixture
def client(settings, store, ids, slot, gate):
    return create_emulated_client(settings, store=store, ids=ids, slot=slot, gate=gate)
