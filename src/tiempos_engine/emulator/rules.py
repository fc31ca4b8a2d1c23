"""Per-table policy consulted by the emulated backend.

Each registered table maps to a ``TableRule`` exposing the capability set
{locate-one, list, insert, update-merge, delete}. Table names without a
registered rule fall back to the base ``TableRule``, which lists nothing,
locates nothing and answers every write with ``UnsupportedOperationError``.

Rules mutate the store synchronously and raise ``TiemposError`` subclasses;
converting those into result envelopes is the backend's job.
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from tiempos_engine.audit.hashing import compute_event_hash
from tiempos_engine.common.exceptions import (
    IdentityCollisionError,
    InvalidRowError,
    MultipleRowsError,
    NotFoundError,
    UnsupportedOperationError,
)
from tiempos_engine.common.schemas import (
    AuditEventType,
    AuditSeverity,
    BetStatus,
    DrawStatus,
    UserRole,
)
from tiempos_engine.emulator.identity import IdentityGenerator
from tiempos_engine.emulator.schemas import (
    AppUserRow,
    AuditEventRow,
    BetRow,
    LedgerTransactionRow,
    LotteryResultRow,
    NumberLimitRow,
    RowModel,
)
from tiempos_engine.emulator.store import FixtureStore, Row

logger = logging.getLogger(__name__)

Order = tuple[str, bool]


def _matches(row: Row, field: str, value: Any) -> bool:
    current = row.get(field)
    if current == value:
        return True
    # Filters arrive as strings from query strings and the CLI
    return current is not None and isinstance(value, str) and str(current) == value


def _validate(model: type[RowModel], row: Row) -> Row:
    try:
        return model.model_validate(row).to_row()
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ())) or "row"
        raise InvalidRowError(f"{location}: {first['msg']}") from exc


class TableRule:
    """Default rule: empty reads, unsupported writes."""

    name: str = ""
    default_order: Optional[Order] = None
    order_aliases: dict[str, str] = {}
    honors_limit: bool = False

    def __init__(self, name: Optional[str] = None):
        if name is not None:
            self.name = name

    # ── Storage mapping ──

    def collections(self, store: FixtureStore) -> list[list[Row]]:
        return []

    def rows(self, store: FixtureStore) -> list[Row]:
        return [row for collection in self.collections(store) for row in collection]

    # ── Reads ──

    def locate_one(self, store: FixtureStore, field: Optional[str], value: Any) -> Row:
        if field is None:
            candidates = self.rows(store)
        else:
            candidates = [row for row in self.rows(store) if _matches(row, field, value)]
        if not candidates:
            raise NotFoundError()
        if len(candidates) > 1:
            raise MultipleRowsError()
        return candidates[0]

    def list_rows(self, store: FixtureStore, field: Optional[str], value: Any) -> list[Row]:
        rows = self.rows(store)
        if field is None:
            return rows
        return [row for row in rows if _matches(row, field, value)]

    def order_rows(self, rows: list[Row], order: Optional[Order]) -> list[Row]:
        order = order or self.default_order
        if order is None:
            return rows
        field, ascending = order
        field = self.order_aliases.get(field, field)
        present = [row for row in rows if row.get(field) is not None]
        missing = [row for row in rows if row.get(field) is None]
        try:
            present.sort(key=lambda row: row[field], reverse=not ascending)
        except TypeError as exc:
            raise InvalidRowError(f"Cannot order {self.name} by '{field}'") from exc
        return present + missing

    # ── Writes ──

    def insert(self, store: FixtureStore, ids: IdentityGenerator, payload: Row) -> Row:
        raise UnsupportedOperationError(f"Insert not supported for table '{self.name}'")

    def update(
        self,
        store: FixtureStore,
        ids: IdentityGenerator,
        field: str,
        value: Any,
        payload: Row,
    ) -> Row:
        raise UnsupportedOperationError(f"Update not supported for table '{self.name}'")

    def delete(self, store: FixtureStore, field: str, value: Any) -> None:
        raise UnsupportedOperationError(f"Delete not supported for table '{self.name}'")


class AuditTrailRule(TableRule):
    """Append-only, hash-chained forensic events."""

    name = "audit_trail"
    default_order = ("timestamp", False)
    order_aliases = {"created_at": "timestamp"}
    honors_limit = True

    def collections(self, store: FixtureStore) -> list[list[Row]]:
        return [store.audit_trail]

    def insert(self, store: FixtureStore, ids: IdentityGenerator, payload: Row) -> Row:
        return self.append(store, ids, payload)

    @staticmethod
    def append(store: FixtureStore, ids: IdentityGenerator, payload: Row) -> Row:
        head = store.audit_head()
        previous_hash = head["hash"] if head else None
        row = _validate(AuditEventRow, {
            **payload,
            "id": ids.next_serial(),
            "event_id": ids.event_id(),
            "timestamp": ids.timestamp(),
            "previous_hash": previous_hash,
        })
        row["hash"] = compute_event_hash(row, previous_hash)
        store.audit_trail.insert(0, row)
        return row

    def update(self, store, ids, field, value, payload):
        raise UnsupportedOperationError("Audit events are append-only")

    def delete(self, store, field, value):
        raise UnsupportedOperationError("Audit events are append-only")


class AppUsersRule(TableRule):
    """Profiles partitioned into clients, vendors and the singleton admin."""

    name = "app_users"

    def collections(self, store: FixtureStore) -> list[list[Row]]:
        return [store.clients, store.vendors, [store.admin]]

    def list_rows(self, store: FixtureStore, field: Optional[str], value: Any) -> list[Row]:
        if field == "role":
            if value == UserRole.SUPER_ADMIN.value:
                return [store.admin]
            return list(store.role_collection(value) or [])
        return super().list_rows(store, field, value)

    def insert(self, store: FixtureStore, ids: IdentityGenerator, payload: Row) -> Row:
        now = ids.timestamp()
        row = _validate(AppUserRow, {
            **payload,
            "id": ids.new_id("user"),
            "created_at": now,
            "updated_at": now,
        })
        target = store.role_collection(row["role"])
        if target is None:
            raise InvalidRowError("New users must have role Cliente or Vendedor")

        self._check_cedula(store, ids, row)
        target.insert(0, row)
        return row

    def update(
        self,
        store: FixtureStore,
        ids: IdentityGenerator,
        field: str,
        value: Any,
        payload: Row,
    ) -> Row:
        target, home = self._find(store, field, value)
        if target is None:
            raise NotFoundError("Update Target Not Found")

        changes = {k: v for k, v in payload.items() if k != "id"}
        merged = _validate(AppUserRow, {**target, **changes, "updated_at": ids.timestamp()})

        destination = home
        if merged["role"] != target["role"]:
            destination = store.role_collection(merged["role"])
            if home is None or destination is None:
                raise InvalidRowError("Role can only move between Cliente and Vendedor")
        if merged.get("cedula") != target.get("cedula"):
            self._check_cedula(store, ids, merged, exclude=target)

        target.update(merged)
        if destination is not home:
            home.remove(target)
            destination.insert(0, target)
        return target

    def delete(self, store: FixtureStore, field: str, value: Any) -> None:
        matches = [
            (collection, index)
            for collection in (store.clients, store.vendors)
            for index, row in enumerate(collection)
            if _matches(row, field, value)
        ]
        if not matches:
            raise NotFoundError("Not found to delete")
        if len(matches) > 1:
            raise MultipleRowsError(f"Delete filter matches {len(matches)} users")
        collection, index = matches[0]
        del collection[index]

    @staticmethod
    def _find(store: FixtureStore, field: str, value: Any) -> tuple[Optional[Row], Optional[list[Row]]]:
        """Search order: clients, vendors, then the admin profile."""
        for collection in (store.clients, store.vendors):
            for row in collection:
                if _matches(row, field, value):
                    return row, collection
        if _matches(store.admin, field, value):
            return store.admin, None
        return None, None

    @staticmethod
    def _check_cedula(
        store: FixtureStore,
        ids: IdentityGenerator,
        row: Row,
        exclude: Optional[Row] = None,
    ) -> None:
        cedula = row.get("cedula")
        if not cedula:
            return
        existing = next(
            (u for u in store.users() if u is not exclude and u.get("cedula") == cedula),
            None,
        )
        if existing is None:
            return

        cross_role = existing["role"] != row["role"]
        logger.warning(
            "Identity collision on cedula %s (existing=%s attempted=%s)",
            cedula, existing["role"], row["role"],
        )
        AuditTrailRule.append(store, ids, {
            "actor_id": row.get("issuer_id"),
            "type": AuditEventType.IDENTITY_COLLISION.value,
            "action": "ATTEMPT_REGISTER_DUAL_ROLE" if cross_role else "ATTEMPT_REGISTER_DUPLICATE",
            "severity": AuditSeverity.CRITICAL.value,
            "target_resource": f"cedula:{cedula}",
            "metadata": {
                "attempted_role": row["role"],
                "existing_role": existing["role"],
                "error": "CROSS_ROLE_VIOLATION_BLOCK" if cross_role else "DUPLICATE_IDENTITY_BLOCK",
            },
        })
        raise IdentityCollisionError(
            f"Cedula {cedula} is already registered as {existing['role']}"
        )


class LedgerTransactionsRule(TableRule):
    """Immutable balance movements; sign and balance arithmetic checked on insert."""

    name = "ledger_transactions"
    default_order = ("created_at", False)
    honors_limit = True

    def collections(self, store: FixtureStore) -> list[list[Row]]:
        return [store.ledger]

    def insert(self, store: FixtureStore, ids: IdentityGenerator, payload: Row) -> Row:
        row = _validate(LedgerTransactionRow, {
            "ticket_code": ids.ticket_code(),
            **payload,
            "id": ids.new_id("tx"),
            "created_at": ids.timestamp(),
        })
        store.ledger.insert(0, row)
        return row

    def update(self, store, ids, field, value, payload):
        raise UnsupportedOperationError("Ledger transactions are immutable")

    def delete(self, store, field, value):
        raise UnsupportedOperationError("Ledger transactions are immutable")


class BetsRule(TableRule):
    name = "bets"
    default_order = ("created_at", False)
    honors_limit = True

    def collections(self, store: FixtureStore) -> list[list[Row]]:
        return [store.bets]

    def insert(self, store: FixtureStore, ids: IdentityGenerator, payload: Row) -> Row:
        row = _validate(BetRow, {
            **payload,
            "id": ids.new_id("bet"),
            "created_at": ids.timestamp(),
            "status": BetStatus.PENDING.value,
        })
        store.bets.insert(0, row)
        return row


class LotteryResultsRule(TableRule):
    """Draws are published by merging the winning number and closing them."""

    name = "lottery_results"

    def collections(self, store: FixtureStore) -> list[list[Row]]:
        return [store.results]

    def update(
        self,
        store: FixtureStore,
        ids: IdentityGenerator,
        field: str,
        value: Any,
        payload: Row,
    ) -> Row:
        target = next((row for row in store.results if _matches(row, field, value)), None)
        if target is None:
            raise NotFoundError("Update Target Not Found")

        changes = {k: v for k, v in payload.items() if k != "id"}
        merged = _validate(LotteryResultRow, {**target, **changes})
        if target["status"] == DrawStatus.CLOSED.value and merged["status"] != DrawStatus.CLOSED.value:
            raise InvalidRowError("A closed draw cannot be reopened")

        target.update(merged)
        return target


class LimitsPerNumberRule(TableRule):
    """Risk limits, unique per (draw_type, number); inserts upsert."""

    name = "limits_per_number"
    key = ("draw_type", "number")

    def collections(self, store: FixtureStore) -> list[list[Row]]:
        return [store.limits]

    def insert(self, store: FixtureStore, ids: IdentityGenerator, payload: Row) -> Row:
        wanted = tuple(payload.get(part) for part in self.key)
        for index, existing in enumerate(store.limits):
            if tuple(existing.get(part) for part in self.key) == wanted:
                merged = _validate(NumberLimitRow, {**existing, **payload, "id": existing["id"]})
                store.limits[index] = merged
                return merged

        row = _validate(NumberLimitRow, {**payload, "id": ids.new_id("limit")})
        store.limits.append(row)
        return row

    def delete(self, store: FixtureStore, field: str, value: Any) -> None:
        matches = [index for index, row in enumerate(store.limits) if _matches(row, field, value)]
        if not matches:
            raise NotFoundError("Not found to delete")
        if len(matches) > 1:
            raise MultipleRowsError(f"Delete filter matches {len(matches)} limits")
        del store.limits[matches[0]]


TABLE_RULES: dict[str, TableRule] = {
    rule.name: rule
    for rule in (
        AppUsersRule(),
        LedgerTransactionsRule(),
        AuditTrailRule(),
        BetsRule(),
        LotteryResultsRule(),
        LimitsPerNumberRule(),
    )
}


def get_rule(table: str) -> TableRule:
    """Registered rule for ``table``, or the all-unsupported default."""
    return TABLE_RULES.get(table) or TableRule(name=table)
