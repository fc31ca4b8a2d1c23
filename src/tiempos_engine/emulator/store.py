"""In-memory fixture store: the single owner of all emulated collections."""

import logging
import random
from typing import Any, Optional

from tiempos_engine.common.config import TiemposSettings, get_settings
from tiempos_engine.common.schemas import UserRole
from tiempos_engine.emulator import seed
from tiempos_engine.emulator.identity import IdentityGenerator, SystemIdentityGenerator

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class FixtureStore:
    """Named, insertion-ordered, mutable collections plus the admin profile.

    Every mutation method completes synchronously; callers await latency
    before invoking them, never in the middle.
    """

    COLLECTIONS = ("clients", "vendors", "ledger", "audit_trail", "bets", "results", "limits")

    def __init__(
        self,
        admin: Row,
        clients: Optional[list[Row]] = None,
        vendors: Optional[list[Row]] = None,
        ledger: Optional[list[Row]] = None,
        audit_trail: Optional[list[Row]] = None,
        bets: Optional[list[Row]] = None,
        results: Optional[list[Row]] = None,
        limits: Optional[list[Row]] = None,
    ):
        self.admin = admin
        self.clients = clients if clients is not None else []
        self.vendors = vendors if vendors is not None else []
        self.ledger = ledger if ledger is not None else []
        self.audit_trail = audit_trail if audit_trail is not None else []
        self.bets = bets if bets is not None else []
        self.results = results if results is not None else []
        self.limits = limits if limits is not None else []

    @classmethod
    def seeded(
        cls,
        settings: Optional[TiemposSettings] = None,
        ids: Optional[IdentityGenerator] = None,
        rng: Optional[random.Random] = None,
    ) -> "FixtureStore":
        """Build the process-wide store with its seed fixtures."""
        settings = settings or get_settings()
        ids = ids or SystemIdentityGenerator()
        rng = rng or random.Random(settings.seed_rng)

        anchor = ids.now()
        ts = anchor.isoformat()
        count = settings.seed_users_per_role
        history = settings.seed_history_seconds

        store = cls(
            admin=seed.build_admin(ts),
            clients=[seed.build_test_player(ts)]
            + seed.generate_users(UserRole.CLIENTE, count, anchor, history, rng),
            vendors=[seed.build_test_vendor(ts)]
            + seed.generate_users(UserRole.VENDEDOR, count, anchor, history, rng),
            ledger=seed.build_ledger(anchor, ids),
            audit_trail=seed.build_audit_trail(anchor),
            results=seed.build_results(anchor),
        )
        ids.reserve_serials(max(row["id"] for row in store.audit_trail))
        logger.debug("Fixture store seeded: %s", store.sizes())
        return store

    # ── Views ──

    def role_collection(self, role: str) -> Optional[list[Row]]:
        """The partition holding users of ``role`` (None for SuperAdmin/unknown)."""
        if role == UserRole.CLIENTE.value:
            return self.clients
        if role == UserRole.VENDEDOR.value:
            return self.vendors
        return None

    def users(self) -> list[Row]:
        """Every profile: clients, then vendors, then the admin."""
        return [*self.clients, *self.vendors, self.admin]

    def audit_head(self) -> Optional[Row]:
        """Newest audit event (highest serial), if any."""
        if not self.audit_trail:
            return None
        return max(self.audit_trail, key=lambda row: row["id"])

    def sizes(self) -> dict[str, int]:
        return {name: len(getattr(self, name)) for name in self.COLLECTIONS}
