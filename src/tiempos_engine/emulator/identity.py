"""Identifier and clock providers for newly created records.

``SystemIdentityGenerator`` is used at runtime; ``SequentialIdentityGenerator``
yields fully deterministic values for tests.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional


class IdentityGenerator:
    """Base provider. Subclasses supply ``_token`` and ``_clock``."""

    def __init__(self):
        self._serial = 0
        self._last_ts: Optional[datetime] = None

    # ── Clock ──

    def _clock(self) -> datetime:
        raise NotImplementedError

    def now(self) -> datetime:
        """Current time, strictly increasing across calls."""
        ts = self._clock()
        if self._last_ts is not None and ts <= self._last_ts:
            ts = self._last_ts + timedelta(microseconds=1)
        self._last_ts = ts
        return ts

    def timestamp(self) -> str:
        return self.now().isoformat()

    # ── Identifiers ──

    def _token(self, length: int) -> str:
        raise NotImplementedError

    def new_id(self, prefix: str) -> str:
        return f"{prefix}-{self._token(12)}"

    def next_serial(self) -> int:
        self._serial += 1
        return self._serial

    def event_id(self) -> str:
        return self.new_id("evt")

    def ticket_code(self) -> str:
        raw = self._token(8).upper()
        return f"TX-{raw[:4]}-{raw[4:8]}"

    def reserve_serials(self, floor: int) -> None:
        """Ensure future serials are above ``floor`` (seeded rows own the lower ones)."""
        self._serial = max(self._serial, floor)


class SystemIdentityGenerator(IdentityGenerator):
    def _clock(self) -> datetime:
        return datetime.now(timezone.utc)

    def _token(self, length: int) -> str:
        return uuid.uuid4().hex[:length]


class SequentialIdentityGenerator(IdentityGenerator):
    """Deterministic ids (``<prefix>-000000000001``) and a clock that ticks one second per call."""

    def __init__(
        self,
        start: Optional[datetime] = None,
        step: timedelta = timedelta(seconds=1),
    ):
        super().__init__()
        self._current = start or datetime(2025, 1, 1, tzinfo=timezone.utc)
        self._step = step
        self._counter = 0

    def _clock(self) -> datetime:
        self._current = self._current + self._step
        return self._current

    def _token(self, length: int) -> str:
        self._counter += 1
        return str(self._counter).zfill(length)
