"""In-memory backend: latency first, then one synchronous store operation."""

import copy
import logging
from typing import Any

from tiempos_engine.common.exceptions import InvalidRowError, TiemposError
from tiempos_engine.common.schemas import Result
from tiempos_engine.emulator.identity import IdentityGenerator
from tiempos_engine.emulator.latency import COLLECTION, READ, WRITE, LatencyGate
from tiempos_engine.emulator.rules import get_rule
from tiempos_engine.emulator.store import FixtureStore
from tiempos_engine.query.builder import Backend, QuerySpec, Row

logger = logging.getLogger(__name__)


def _detach(data: Any) -> Any:
    # Callers get copies; the store stays the only owner of its rows
    return copy.deepcopy(data)


class EmulatorBackend(Backend):
    """Resolves builder terminals against a ``FixtureStore`` via ``TableRules``."""

    def __init__(self, store: FixtureStore, gate: LatencyGate, ids: IdentityGenerator):
        self.store = store
        self.gate = gate
        self.ids = ids

    async def fetch_one(self, spec: QuerySpec) -> Result:
        await self.gate.wait(READ)
        rule = get_rule(spec.table)
        try:
            row = rule.locate_one(self.store, spec.filter_field, spec.filter_value)
        except TiemposError as exc:
            return self._failure("single", spec, exc)
        return Result.success(_detach(row))

    async def fetch_many(self, spec: QuerySpec) -> Result:
        await self.gate.wait(COLLECTION)
        rule = get_rule(spec.table)
        try:
            if spec.limit is not None and spec.limit < 0:
                raise InvalidRowError("limit() requires a non-negative count")
            rows = rule.order_rows(
                rule.list_rows(self.store, spec.filter_field, spec.filter_value),
                spec.order,
            )
        except TiemposError as exc:
            return self._failure("fetch", spec, exc)
        if rule.honors_limit and spec.limit is not None:
            rows = rows[: spec.limit]
        return Result.success(_detach(rows))

    async def insert(self, spec: QuerySpec, rows: list[Row]) -> Result:
        await self.gate.wait(WRITE)
        try:
            if not rows:
                raise InvalidRowError("Insert requires a row payload")
            row = get_rule(spec.table).insert(self.store, self.ids, dict(rows[0]))
        except TiemposError as exc:
            return self._failure("insert", spec, exc)
        logger.debug("Inserted %s into %s", row.get("id"), spec.table)
        return Result.success(_detach(row))

    async def update(self, spec: QuerySpec, payload: Row) -> Result:
        await self.gate.wait(WRITE)
        try:
            if spec.filter is None:
                raise InvalidRowError("Update requires an eq() filter")
            row = get_rule(spec.table).update(
                self.store, self.ids, spec.filter_field, spec.filter_value, payload,
            )
        except TiemposError as exc:
            return self._failure("update", spec, exc)
        return Result.success(_detach(row))

    async def delete(self, spec: QuerySpec) -> Result:
        await self.gate.wait(WRITE)
        try:
            if spec.filter is None:
                raise InvalidRowError("Delete requires an eq() filter")
            get_rule(spec.table).delete(self.store, spec.filter_field, spec.filter_value)
        except TiemposError as exc:
            return self._failure("delete", spec, exc)
        return Result.success(True)

    @staticmethod
    def _failure(operation: str, spec: QuerySpec, exc: TiemposError) -> Result:
        level = logging.WARNING if isinstance(exc, InvalidRowError) else logging.DEBUG
        logger.log(
            level, "%s on %s failed [%s]: %s", operation, spec.table, exc.code, exc.message,
            extra={"table": spec.table, "operation": operation, "code": exc.code},
        )
        return Result.failure(exc)
