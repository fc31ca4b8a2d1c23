"""Mock authentication for the emulated backend."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from tiempos_engine.common.exceptions import AuthFailureError
from tiempos_engine.common.schemas import Result, UserRole
from tiempos_engine.auth.session import SessionSlot, load_session, store_session
from tiempos_engine.emulator import seed
from tiempos_engine.emulator.identity import IdentityGenerator, SystemIdentityGenerator
from tiempos_engine.emulator.latency import AUTH, LatencyGate

logger = logging.getLogger(__name__)

DEMO_ACCESS_TOKEN = "mock-jwt-token"
FAILING_PASSWORD = "error"


@dataclass(frozen=True)
class AuthIdentity:
    auth_uid: str
    email: str
    role: UserRole
    profile_id: str


ADMIN_IDENTITY = AuthIdentity(
    seed.ADMIN_AUTH_UID, seed.ADMIN_EMAIL, UserRole.SUPER_ADMIN, seed.ADMIN_PROFILE_ID,
)
VENDOR_IDENTITY = AuthIdentity(
    seed.TEST_VENDOR_AUTH_UID, seed.TEST_VENDOR_EMAIL, UserRole.VENDEDOR, seed.TEST_VENDOR_ID,
)
PLAYER_IDENTITY = AuthIdentity(
    seed.TEST_PLAYER_AUTH_UID, seed.TEST_PLAYER_EMAIL, UserRole.CLIENTE, seed.TEST_PLAYER_ID,
)


class Subscription:
    """Handle returned by ``on_auth_state_change``. The emulator never pushes events."""

    def unsubscribe(self) -> None:
        return None


class SessionManager:
    """Credential matching, session issuance and the durable session slot."""

    def __init__(
        self,
        slot: SessionSlot,
        gate: LatencyGate,
        storage_key: str = "tiempospro_demo_session",
        ids: Optional[IdentityGenerator] = None,
    ):
        self.slot = slot
        self.gate = gate
        self.storage_key = storage_key
        self.ids = ids or SystemIdentityGenerator()

    def _resolve(self, email: str, password: str) -> AuthIdentity:
        # Test identities match on email alone, before the failing-password check
        if email == VENDOR_IDENTITY.email:
            return VENDOR_IDENTITY
        if email == PLAYER_IDENTITY.email:
            return PLAYER_IDENTITY
        if password == FAILING_PASSWORD:
            raise AuthFailureError()
        return ADMIN_IDENTITY

    def _auth_user(self, identity: AuthIdentity) -> dict[str, Any]:
        return {
            "id": identity.auth_uid,
            "email": identity.email,
            "aud": "authenticated",
            "role": "authenticated",
            "app_metadata": {"role": identity.role.value, "profile_id": identity.profile_id},
            "created_at": self.ids.timestamp(),
        }

    async def sign_in_with_password(self, credentials: dict[str, str]) -> Result:
        await self.gate.wait(AUTH)
        email = credentials.get("email", "")
        try:
            identity = self._resolve(email, credentials.get("password", ""))
        except AuthFailureError as exc:
            logger.warning("Sign-in rejected for %s", email)
            return Result.failure(exc)

        user = self._auth_user(identity)
        session = {"access_token": DEMO_ACCESS_TOKEN, "user": user}
        store_session(self.slot, self.storage_key, session)
        logger.info("Signed in as %s (%s)", identity.email, identity.role.value)
        return Result.success({"user": user, "session": session})

    async def get_session(self) -> Result:
        return Result.success({"session": load_session(self.slot, self.storage_key)})

    async def get_user(self) -> Result:
        session = load_session(self.slot, self.storage_key)
        return Result.success({"user": session["user"] if session else None})

    async def sign_out(self) -> Result:
        self.slot.remove(self.storage_key)
        logger.info("Signed out")
        return Result.success(None)

    def on_auth_state_change(self, handler: Callable[[str, Optional[dict]], Any]) -> Result:
        return Result.success({"subscription": Subscription()})
