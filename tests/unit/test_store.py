"""Tests for fixture seeding and store views."""

import random
from datetime import datetime

from tiempos_engine.audit.hashing import verify_trail
from tiempos_engine.common.config import TiemposSettings
from tiempos_engine.emulator import seed
from tiempos_engine.emulator.identity import SequentialIdentityGenerator
from tiempos_engine.emulator.store import FixtureStore

USERS_PER_ROLE = 10


class TestSeeding:
    def test_collection_sizes(self, store):
        sizes = store.sizes()
        assert sizes["clients"] == USERS_PER_ROLE + 1
        assert sizes["vendors"] == USERS_PER_ROLE + 1
        assert sizes["ledger"] == seed.LEDGER_FIXTURES
        assert sizes["audit_trail"] == 5
        assert sizes["results"] == 3
        assert sizes["bets"] == 0
        assert sizes["limits"] == 0

    def test_test_identities_come_first(self, store):
        assert store.clients[0]["id"] == seed.TEST_PLAYER_ID
        assert store.vendors[0]["id"] == seed.TEST_VENDOR_ID
        assert store.clients[1]["id"] == "cliente-0"
        assert store.vendors[1]["id"] == "vendedor-0"

    def test_admin_profile(self, store):
        assert store.admin["id"] == seed.ADMIN_PROFILE_ID
        assert store.admin["role"] == "SuperAdmin"
        assert store.admin["issuer_id"] is None

    def test_synthetic_users(self, store):
        anchor = datetime.fromisoformat(store.admin["created_at"])
        for user in store.clients[1:] + store.vendors[1:]:
            assert user["status"] in ("Active", "Suspended")
            assert 0 <= user["balance_bigint"] < 1_000_000
            created = datetime.fromisoformat(user["created_at"])
            assert created <= anchor
            assert (anchor - created).total_seconds() <= 1_000_000
            assert user["issuer_id"] == seed.ADMIN_PROFILE_ID

    def test_mostly_active(self):
        settings = TiemposSettings(seed_users_per_role=200, seed_rng=7)
        store = FixtureStore.seeded(settings, SequentialIdentityGenerator())
        synthetic = store.clients[1:] + store.vendors[1:]
        active = sum(1 for u in synthetic if u["status"] == "Active")
        assert 0.65 < active / len(synthetic) < 0.95

    def test_cedulas_unique(self, store):
        cedulas = [u["cedula"] for u in store.users()]
        assert len(cedulas) == len(set(cedulas))

    def test_same_rng_same_fixtures(self, settings):
        a = FixtureStore.seeded(settings, SequentialIdentityGenerator(), random.Random(99))
        b = FixtureStore.seeded(settings, SequentialIdentityGenerator(), random.Random(99))
        assert a.clients == b.clients
        assert a.vendors == b.vendors

    def test_seed_ledger_respects_invariant(self, store):
        for row in store.ledger:
            assert row["balance_after"] - row["balance_before"] == row["amount_bigint"]
            assert (row["amount_bigint"] >= 0) == (row["type"] == "CREDIT")

    def test_seed_audit_trail_is_chained(self, store):
        assert verify_trail(store.audit_trail)["valid"] is True
        assert store.audit_trail[0]["event_id"] == "evt-purge-001"

    def test_results_open_for_today(self, store):
        anchor = datetime.fromisoformat(store.admin["created_at"])
        assert {r["status"] for r in store.results} == {"OPEN"}
        assert {r["date"] for r in store.results} == {anchor.date().isoformat()}

    def test_serials_reserved_above_fixtures(self, store, ids):
        assert ids.next_serial() == 1006


class TestViews:
    def test_users_order(self, store):
        users = store.users()
        assert users[0] is store.clients[0]
        assert users[-1] is store.admin
        assert len(users) == 2 * (USERS_PER_ROLE + 1) + 1

    def test_role_collection(self, store):
        assert store.role_collection("Cliente") is store.clients
        assert store.role_collection("Vendedor") is store.vendors
        assert store.role_collection("SuperAdmin") is None

    def test_audit_head(self, store):
        assert store.audit_head()["id"] == 1005
        assert FixtureStore(admin={}).audit_head() is None
