"""Hosted backend access over httpx: PostgREST tables and GoTrue auth.

Speaks the same builder contract as the emulator, so callers never branch
on which one ``create_client`` handed them.
"""

import logging
from typing import Any, Callable, Optional

import httpx

from tiempos_engine.auth.session import SessionSlot, load_session, store_session
from tiempos_engine.common.exceptions import (
    AuthFailureError,
    BackendUnavailableError,
    MultipleRowsError,
    NotFoundError,
    TiemposError,
    UnsupportedOperationError,
)
from tiempos_engine.common.schemas import Result
from tiempos_engine.query.builder import Backend, QuerySpec, Row

logger = logging.getLogger(__name__)

REST_PREFIX = "/rest/v1"
AUTH_PREFIX = "/auth/v1"
SINGLE_OBJECT = "application/vnd.pgrst.object+json"

# Tables whose inserts are upserts on a composite business key
UPSERT_KEYS = {"limits_per_number": "draw_type,number"}


def _filter_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


class RemoteConnection:
    """Shared HTTP client plus credential headers for one backend project."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        slot: SessionSlot,
        storage_key: str,
        timeout: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.slot = slot
        self.storage_key = storage_key
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    def headers(self, token: Optional[str] = None, **extra: str) -> dict[str, str]:
        if token is None:
            session = load_session(self.slot, self.storage_key)
            token = session["access_token"] if session else self.anon_key
        return {"apikey": self.anon_key, "Authorization": f"Bearer {token}", **extra}

    async def request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send one request; raise ``TiemposError`` for transport and HTTP failures.

        No retries: exactly one outcome per call, like the emulator.
        """
        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise BackendUnavailableError(f"{method} {path}: {exc}") from exc

        if resp.status_code >= 400:
            raise self._error_for(resp)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise BackendUnavailableError("Invalid JSON response") from exc

    @staticmethod
    def _error_for(resp: httpx.Response) -> TiemposError:
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = (
            body.get("message")
            or body.get("error_description")
            or body.get("msg")
            or f"HTTP {resp.status_code}"
        )

        if resp.status_code == 406 and body.get("code") == "PGRST116":
            if "0 rows" in (body.get("details") or ""):
                return NotFoundError(message)
            return MultipleRowsError(message)
        if resp.status_code == 404:
            return UnsupportedOperationError(message)
        if resp.status_code in (400, 401, 403) and resp.request.url.path.startswith(AUTH_PREFIX):
            return AuthFailureError(message)
        if resp.status_code >= 500:
            return BackendUnavailableError(f"Server error: {resp.status_code}")
        return TiemposError(message, code=f"HTTP_{resp.status_code}")

    async def close(self) -> None:
        await self._http.aclose()


class RestBackend(Backend):
    """Builder terminals translated into PostgREST requests."""

    def __init__(self, connection: RemoteConnection):
        self.connection = connection

    @staticmethod
    def _params(spec: QuerySpec, *, select: bool = True, shape: bool = False) -> dict[str, str]:
        params = {"select": "*"} if select else {}
        if spec.filter is not None:
            params[spec.filter_field] = f"eq.{_filter_literal(spec.filter_value)}"
        if shape:
            if spec.order is not None:
                field, ascending = spec.order
                params["order"] = f"{field}.{'asc' if ascending else 'desc'}"
            if spec.limit is not None:
                params["limit"] = str(spec.limit)
        return params

    @staticmethod
    def _path(spec: QuerySpec) -> str:
        return f"{REST_PREFIX}/{spec.table}"

    async def _run(self, operation: str, spec: QuerySpec, call: Callable[[], Any]) -> Result:
        try:
            return Result.success(await call())
        except TiemposError as exc:
            logger.debug(
                "%s on %s failed [%s]: %s", operation, spec.table, exc.code, exc.message,
                extra={"table": spec.table, "operation": operation, "code": exc.code},
            )
            return Result.failure(exc)

    async def fetch_one(self, spec: QuerySpec) -> Result:
        async def call():
            return await self.connection.request(
                "GET", self._path(spec),
                params=self._params(spec),
                headers=self.connection.headers(Accept=SINGLE_OBJECT),
            )
        return await self._run("single", spec, call)

    async def fetch_many(self, spec: QuerySpec) -> Result:
        async def call():
            data = await self.connection.request(
                "GET", self._path(spec),
                params=self._params(spec, shape=True),
                headers=self.connection.headers(),
            )
            return data or []
        return await self._run("fetch", spec, call)

    async def insert(self, spec: QuerySpec, rows: list[Row]) -> Result:
        async def call():
            params: dict[str, str] = {}
            prefer = "return=representation"
            if spec.table in UPSERT_KEYS:
                params["on_conflict"] = UPSERT_KEYS[spec.table]
                prefer += ",resolution=merge-duplicates"
            data = await self.connection.request(
                "POST", self._path(spec),
                params=params,
                json=rows[:1],
                headers=self.connection.headers(Prefer=prefer),
            )
            return data[0] if isinstance(data, list) and data else data
        return await self._run("insert", spec, call)

    async def update(self, spec: QuerySpec, payload: Row) -> Result:
        async def call():
            data = await self.connection.request(
                "PATCH", self._path(spec),
                params=self._params(spec, select=False),
                json=payload,
                headers=self.connection.headers(Prefer="return=representation"),
            )
            if not data:
                raise NotFoundError("Update Target Not Found")
            return data[0]
        return await self._run("update", spec, call)

    async def delete(self, spec: QuerySpec) -> Result:
        async def call():
            data = await self.connection.request(
                "DELETE", self._path(spec),
                params=self._params(spec, select=False),
                headers=self.connection.headers(Prefer="return=representation"),
            )
            if not data:
                raise NotFoundError("Not found to delete")
            return True
        return await self._run("delete", spec, call)

    async def close(self) -> None:
        await self.connection.close()


class RemoteSubscription:
    def __init__(self, auth: "RemoteAuth", handler: Callable):
        self._auth = auth
        self._handler = handler

    def unsubscribe(self) -> None:
        if self._handler in self._auth.handlers:
            self._auth.handlers.remove(self._handler)


class RemoteAuth:
    """Password sign-in against GoTrue; the session lives in the durable slot."""

    def __init__(self, connection: RemoteConnection):
        self.connection = connection
        self.handlers: list[Callable[[str, Optional[dict]], Any]] = []

    def _emit(self, event: str, session: Optional[dict]) -> None:
        for handler in list(self.handlers):
            handler(event, session)

    async def sign_in_with_password(self, credentials: dict[str, str]) -> Result:
        try:
            body = await self.connection.request(
                "POST", f"{AUTH_PREFIX}/token",
                params={"grant_type": "password"},
                json={"email": credentials.get("email", ""), "password": credentials.get("password", "")},
                headers={"apikey": self.connection.anon_key},
            )
        except TiemposError as exc:
            logger.warning("Sign-in rejected for %s: %s", credentials.get("email"), exc.message)
            return Result.failure(exc)
        if not isinstance(body, dict) or "access_token" not in body:
            return Result.failure(AuthFailureError("Token response without access_token"))

        session = {
            "access_token": body["access_token"],
            "refresh_token": body.get("refresh_token"),
            "user": body.get("user"),
        }
        store_session(self.connection.slot, self.connection.storage_key, session)
        self._emit("SIGNED_IN", session)
        return Result.success({"user": session["user"], "session": session})

    async def get_session(self) -> Result:
        return Result.success(
            {"session": load_session(self.connection.slot, self.connection.storage_key)}
        )

    async def get_user(self) -> Result:
        session = load_session(self.connection.slot, self.connection.storage_key)
        if session is None:
            return Result.success({"user": None})
        try:
            user = await self.connection.request(
                "GET", f"{AUTH_PREFIX}/user",
                headers=self.connection.headers(token=session["access_token"]),
            )
        except TiemposError as exc:
            return Result.failure(exc)
        return Result.success({"user": user})

    async def sign_out(self) -> Result:
        session = load_session(self.connection.slot, self.connection.storage_key)
        self.connection.slot.remove(self.connection.storage_key)
        self._emit("SIGNED_OUT", None)
        if session is None:
            return Result.success(None)
        try:
            await self.connection.request(
                "POST", f"{AUTH_PREFIX}/logout",
                headers=self.connection.headers(token=session["access_token"]),
            )
        except TiemposError as exc:
            logger.warning("Remote logout failed: %s", exc.message)
            return Result.failure(exc)
        return Result.success(None)

    def on_auth_state_change(self, handler: Callable[[str, Optional[dict]], Any]) -> Result:
        self.handlers.append(handler)
        return Result.success({"subscription": RemoteSubscription(self, handler)})
