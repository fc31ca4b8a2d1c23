"""End-to-end flows against the emulated client."""

import asyncio
import time

import pytest

from tiempos_engine.audit.hashing import verify_trail
from tiempos_engine.audit.logger import AuditLogger
from tiempos_engine.client import create_emulated_client
from tiempos_engine.common.schemas import AuditCategory, AuditSeverity
from tiempos_engine.emulator import seed
from tiempos_engine.emulator.latency import LatencyGate


class ScriptedGate(LatencyGate):
    """Serves delays from a script, one per call, ignoring the kind."""

    def __init__(self, *delays):
        super().__init__(scale=0.0)
        self.script = list(delays)
        self.kinds = []

    async def wait(self, kind):
        self.kinds.append(kind)
        await asyncio.sleep(self.script.pop(0) if self.script else 0)


async def test_player_session_to_ledger(client):
    signed = await client.auth.sign_in_with_password(
        {"email": seed.TEST_PLAYER_EMAIL, "password": "x"},
    )
    auth_uid = signed.data["user"]["id"]

    profile = await client.from_("app_users").select("*").eq("auth_uid", auth_uid).single()
    assert profile.data["id"] == seed.TEST_PLAYER_ID
    balance = profile.data["balance_bigint"]

    bet = await client.from_("bets").insert([{
        "user_id": profile.data["id"], "amount_bigint": 2000, "numbers": "42", "draw": "NOCHE",
    }]).select().single()
    assert bet.data["status"] == "PENDING"

    debit = await client.from_("ledger_transactions").insert([{
        "user_id": profile.data["id"],
        "amount_bigint": -2000,
        "balance_before": balance,
        "balance_after": balance - 2000,
        "type": "DEBIT",
        "reference_id": bet.data["id"],
    }]).select().single()
    assert debit.ok

    await client.from_("app_users").update({"balance_bigint": balance - 2000}).eq(
        "id", profile.data["id"],
    ).execute()

    history = await client.from_("ledger_transactions").select().eq(
        "user_id", profile.data["id"],
    ).fetch()
    assert [row["id"] for row in history.data] == [debit.data["id"]]

    bets = await client.from_("bets").select().eq("user_id", profile.data["id"]).fetch()
    assert [row["id"] for row in bets.data] == [bet.data["id"]]

    refreshed = await client.from_("app_users").select().eq("id", profile.data["id"]).single()
    assert refreshed.data["balance_bigint"] == balance - 2000


async def test_overdraw_rejected(client):
    result = await client.from_("app_users").update({"balance_bigint": -1}).eq(
        "id", seed.TEST_PLAYER_ID,
    ).execute()
    assert result.error.code == "INVALID_ROW"


async def test_draw_publication(client):
    draws = await client.from_("lottery_results").select().fetch()
    assert [row["status"] for row in draws.data] == ["OPEN", "OPEN", "OPEN"]

    await client.from_("lottery_results").update(
        {"winningNumber": "77", "isReventado": True, "status": "CLOSED"},
    ).eq("drawTime", "Mediodía (12:55)").execute()

    closed = await client.from_("lottery_results").select().eq("status", "CLOSED").fetch()
    assert [row["winningNumber"] for row in closed.data] == ["77"]


async def test_audit_logging_keeps_chain(client, store):
    await client.auth.sign_in_with_password({"email": "admin@tiempos.local", "password": "pw"})
    audit = AuditLogger(client)
    for action in ("LOGIN", "RECHARGE", "PURGE"):
        await audit.log(action, category=AuditCategory.ADMIN, severity=AuditSeverity.INFO)

    trail = await client.from_("audit_trail").select().fetch()
    assert [row["action"] for row in trail.data[:3]] == ["PURGE", "RECHARGE", "LOGIN"]
    assert {row["actor_id"] for row in trail.data[:3]} == {seed.ADMIN_PROFILE_ID}
    assert verify_trail(trail.data)["valid"] is True


class TestLatency:
    async def test_calls_wait_for_their_kind(self, settings, store, ids, slot):
        gate = ScriptedGate()
        client = create_emulated_client(settings, store=store, ids=ids, slot=slot, gate=gate)
        await client.auth.sign_in_with_password({"email": "a@b.c", "password": "x"})
        await client.from_("bets").select().fetch()
        await client.from_("bets").select().eq("id", "x").single()
        await client.from_("bets").insert({"user_id": "u", "amount_bigint": 1}).execute()
        assert gate.kinds == ["auth", "collection", "read", "write"]

    async def test_concurrent_reads_overlap(self, settings, store, ids, slot):
        gate = LatencyGate(read=0.2, collection=0.2)
        client = create_emulated_client(settings, store=store, ids=ids, slot=slot, gate=gate)

        started = time.monotonic()
        results = await asyncio.gather(*(
            client.from_("app_users").select().eq("id", f"cliente-{i}").single() for i in range(5)
        ))
        elapsed = time.monotonic() - started

        assert all(result.ok for result in results)
        assert elapsed < 0.8

    async def test_last_completion_wins(self, settings, store, ids, slot):
        gate = ScriptedGate(0.1, 0.0)
        client = create_emulated_client(settings, store=store, ids=ids, slot=slot, gate=gate)

        slow, fast = await asyncio.gather(
            client.from_("app_users").update({"name": "Primero"}).eq("id", "cliente-0").execute(),
            client.from_("app_users").update({"name": "Segundo"}).eq("id", "cliente-0").execute(),
        )
        assert slow.data["name"] == "Primero"
        assert fast.data["name"] == "Segundo"
        assert next(u for u in store.clients if u["id"] == "cliente-0")["name"] == "Primero"

    async def test_failed_write_still_waits(self, settings, store, ids, slot):
        gate = ScriptedGate()
        client = create_emulated_client(settings, store=store, ids=ids, slot=slot, gate=gate)
        result = await client.from_("ghosts").insert({"x": 1}).execute()
        assert result.error.code == "UNSUPPORTED"
        assert gate.kinds == ["write"]


async def test_context_manager_closes(settings, store, ids, slot, gate):
    async with create_emulated_client(settings, store=store, ids=ids, slot=slot, gate=gate) as client:
        result = await client.from_("bets").select().fetch()
    assert result.data == []
