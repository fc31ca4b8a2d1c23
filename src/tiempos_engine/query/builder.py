"""Fluent query builders shared by the emulated and the remote backend.

Each chain stage returns a distinct type that only exposes the next legal
calls::

    await client.from_("bets").select("*").eq("user_id", uid).order("created_at").fetch()
    await client.from_("app_users").select().eq("auth_uid", uid).single()
    await client.from_("bets").insert([row]).select().single()
    await client.from_("app_users").update({"status": "Suspended"}).eq("id", uid).execute()
    await client.from_("app_users").delete().eq("id", uid).execute()

Builders hold nothing but the in-flight ``QuerySpec``; every terminal
resolves to a ``Result`` envelope produced by the backend.
"""

from dataclasses import dataclass, replace
from typing import Any, Optional, Union

from tiempos_engine.common.schemas import Result

Row = dict[str, Any]


@dataclass(frozen=True)
class QuerySpec:
    """Accumulated state of one chained expression."""

    table: str
    filter: Optional[tuple[str, Any]] = None
    order: Optional[tuple[str, bool]] = None
    limit: Optional[int] = None

    @property
    def filter_field(self) -> Optional[str]:
        return self.filter[0] if self.filter else None

    @property
    def filter_value(self) -> Any:
        return self.filter[1] if self.filter else None


class Backend:
    """Executes terminal operations. Implementations never raise across this boundary."""

    async def fetch_one(self, spec: QuerySpec) -> Result:
        raise NotImplementedError

    async def fetch_many(self, spec: QuerySpec) -> Result:
        raise NotImplementedError

    async def insert(self, spec: QuerySpec, rows: list[Row]) -> Result:
        raise NotImplementedError

    async def update(self, spec: QuerySpec, payload: Row) -> Result:
        raise NotImplementedError

    async def delete(self, spec: QuerySpec) -> Result:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class SelectQuery:
    """Read stage: filter/order/limit, then ``single()`` or ``fetch()``."""

    def __init__(self, backend: Backend, spec: QuerySpec):
        self._backend = backend
        self._spec = spec

    @property
    def spec(self) -> QuerySpec:
        return self._spec

    def select(self, columns: str = "*") -> "SelectQuery":
        # Projection is not applied; full rows are always returned.
        return self

    def eq(self, field: str, value: Any) -> "SelectQuery":
        """Single-predicate filter; a second call replaces the first."""
        self._spec = replace(self._spec, filter=(field, value))
        return self

    def order(self, field: str, ascending: bool = False) -> "SelectQuery":
        self._spec = replace(self._spec, order=(field, ascending))
        return self

    def limit(self, count: int) -> "SelectQuery":
        self._spec = replace(self._spec, limit=count)
        return self

    async def single(self) -> Result:
        """Exactly one matching row, or a NOT_FOUND / MULTIPLE_ROWS error."""
        return await self._backend.fetch_one(self._spec)

    async def fetch(self) -> Result:
        """Every matching row, ordered."""
        return await self._backend.fetch_many(self._spec)


class InsertSelect:
    def __init__(self, query: "InsertQuery"):
        self._query = query

    async def single(self) -> Result:
        return await self._query.execute()


class InsertQuery:
    def __init__(self, backend: Backend, spec: QuerySpec, rows: list[Row]):
        self._backend = backend
        self._spec = spec
        self._rows = rows

    def select(self, columns: str = "*") -> InsertSelect:
        return InsertSelect(self)

    async def execute(self) -> Result:
        return await self._backend.insert(self._spec, self._rows)


class UpdateSelect:
    def __init__(self, query: "FilteredUpdate"):
        self._query = query

    async def single(self) -> Result:
        return await self._query.execute()


class FilteredUpdate:
    def __init__(self, backend: Backend, spec: QuerySpec, payload: Row):
        self._backend = backend
        self._spec = spec
        self._payload = payload

    def select(self, columns: str = "*") -> UpdateSelect:
        return UpdateSelect(self)

    async def execute(self) -> Result:
        return await self._backend.update(self._spec, self._payload)


class UpdateQuery:
    """Update stage: needs a target filter before it can run."""

    def __init__(self, backend: Backend, spec: QuerySpec, payload: Row):
        self._backend = backend
        self._spec = spec
        self._payload = payload

    def eq(self, field: str, value: Any) -> FilteredUpdate:
        return FilteredUpdate(
            self._backend, replace(self._spec, filter=(field, value)), self._payload,
        )


class FilteredDelete:
    def __init__(self, backend: Backend, spec: QuerySpec):
        self._backend = backend
        self._spec = spec

    async def execute(self) -> Result:
        return await self._backend.delete(self._spec)


class DeleteQuery:
    """Delete stage: needs a target filter before it can run."""

    def __init__(self, backend: Backend, spec: QuerySpec):
        self._backend = backend
        self._spec = spec

    def eq(self, field: str, value: Any) -> FilteredDelete:
        return FilteredDelete(self._backend, replace(self._spec, filter=(field, value)))


class TableQuery(SelectQuery):
    """Entry point returned by ``client.from_(table)``."""

    def __init__(self, backend: Backend, table: str):
        super().__init__(backend, QuerySpec(table=table))

    # Read calls leave the table stage, so writes cannot follow a filter.

    def select(self, columns: str = "*") -> SelectQuery:
        return SelectQuery(self._backend, self._spec)

    def eq(self, field: str, value: Any) -> SelectQuery:
        return self.select().eq(field, value)

    def order(self, field: str, ascending: bool = False) -> SelectQuery:
        return self.select().order(field, ascending)

    def limit(self, count: int) -> SelectQuery:
        return self.select().limit(count)

    def insert(self, rows: Union[Row, list[Row]]) -> InsertQuery:
        if isinstance(rows, dict):
            rows = [rows]
        return InsertQuery(self._backend, self._spec, list(rows))

    def update(self, payload: Row) -> UpdateQuery:
        return UpdateQuery(self._backend, self._spec, dict(payload))

    def delete(self) -> DeleteQuery:
        return DeleteQuery(self._backend, self._spec)
