"""Tests for session slots and the emulated sign-in flow."""

import json

import pytest

from tiempos_engine.auth.manager import DEMO_ACCESS_TOKEN, SessionManager
from tiempos_engine.auth.session import FileSlot, MemorySlot, load_session, store_session
from tiempos_engine.emulator import seed
from tiempos_engine.emulator.latency import LatencyGate

KEY = "tiempospro_demo_session"


@pytest.fixture
def manager(slot, gate, ids):
    return SessionManager(slot, gate, storage_key=KEY, ids=ids)


class TestFileSlot:
    def test_missing_file_is_empty(self, tmp_path):
        assert FileSlot(str(tmp_path / "none.json")).get(KEY) is None

    def test_set_creates_parents(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "session.json"
        slot = FileSlot(str(path))
        slot.set(KEY, "value")
        assert json.loads(path.read_text(encoding="utf-8")) == {KEY: "value"}

    def test_survives_new_instance(self, tmp_path):
        path = str(tmp_path / "session.json")
        FileSlot(path).set(KEY, "value")
        assert FileSlot(path).get(KEY) == "value"

    def test_remove_keeps_other_keys(self, tmp_path):
        slot = FileSlot(str(tmp_path / "session.json"))
        slot.set(KEY, "a")
        slot.set("other", "b")
        slot.remove(KEY)
        assert slot.get(KEY) is None
        assert slot.get("other") == "b"

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json", encoding="utf-8")
        assert FileSlot(str(path)).get(KEY) is None


class TestSessionRecord:
    def test_roundtrip(self, slot):
        session = {"access_token": "tok", "user": {"email": "jugador@test.com", "name": "Peña"}}
        store_session(slot, KEY, session)
        assert load_session(slot, KEY) == session

    def test_missing(self, slot):
        assert load_session(slot, KEY) is None

    def test_malformed(self, slot):
        slot.set(KEY, "{broken")
        assert load_session(slot, KEY) is None

    def test_without_token(self, slot):
        slot.set(KEY, json.dumps({"user": {}}))
        assert load_session(slot, KEY) is None


class TestSignIn:
    async def test_vendor_email_any_password(self, manager):
        result = await manager.sign_in_with_password(
            {"email": seed.TEST_VENDOR_EMAIL, "password": "error"},
        )
        assert result.ok
        user = result.data["user"]
        assert user["id"] == seed.TEST_VENDOR_AUTH_UID
        assert user["app_metadata"] == {"role": "Vendedor", "profile_id": seed.TEST_VENDOR_ID}

    async def test_player(self, manager):
        result = await manager.sign_in_with_password(
            {"email": seed.TEST_PLAYER_EMAIL, "password": "x"},
        )
        assert result.data["user"]["id"] == seed.TEST_PLAYER_AUTH_UID

    async def test_any_other_email_is_admin(self, manager):
        result = await manager.sign_in_with_password(
            {"email": "someone@else.com", "password": "secret"},
        )
        user = result.data["user"]
        assert user["id"] == seed.ADMIN_AUTH_UID
        assert user["email"] == seed.ADMIN_EMAIL
        assert result.data["session"]["access_token"] == DEMO_ACCESS_TOKEN

    async def test_failing_password(self, manager, slot):
        result = await manager.sign_in_with_password(
            {"email": "someone@else.com", "password": "error"},
        )
        assert result.data is None
        assert result.error.code == "AUTH_FAILURE"
        assert result.error.message == "Error de Inicio de Sesión Simulado"
        assert slot.get(KEY) is None

    async def test_session_roundtrip(self, manager):
        signed = await manager.sign_in_with_password(
            {"email": seed.TEST_PLAYER_EMAIL, "password": "x"},
        )
        session = await manager.get_session()
        assert session.data["session"] == signed.data["session"]
        user = await manager.get_user()
        assert user.data["user"] == signed.data["user"]

    async def test_sign_out(self, manager):
        await manager.sign_in_with_password({"email": seed.TEST_PLAYER_EMAIL, "password": "x"})
        result = await manager.sign_out()
        assert result.ok
        assert (await manager.get_session()).data == {"session": None}
        assert (await manager.get_user()).data == {"user": None}

    async def test_persists_across_managers(self, tmp_path, ids):
        path = str(tmp_path / "session.json")
        gate = LatencyGate(scale=0.0)
        first = SessionManager(FileSlot(path), gate, storage_key=KEY, ids=ids)
        await first.sign_in_with_password({"email": seed.TEST_VENDOR_EMAIL, "password": "x"})

        second = SessionManager(FileSlot(path), gate, storage_key=KEY, ids=ids)
        user = await second.get_user()
        assert user.data["user"]["email"] == seed.TEST_VENDOR_EMAIL

    def test_subscription_is_inert(self, manager):
        calls = []
        result = manager.on_auth_state_change(lambda event, session: calls.append(event))
        result.data["subscription"].unsubscribe()
        assert calls == []
