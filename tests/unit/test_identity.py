"""Tests for identifier and clock providers."""

import re
from datetime import datetime, timezone

from tiempos_engine.emulator.identity import (
    SequentialIdentityGenerator,
    SystemIdentityGenerator,
)


class FrozenClockGenerator(SystemIdentityGenerator):
    def _clock(self):
        return datetime(2025, 6, 1, tzinfo=timezone.utc)


class TestSequential:
    def test_ids_are_deterministic(self):
        a, b = SequentialIdentityGenerator(), SequentialIdentityGenerator()
        assert [a.new_id("bet") for _ in range(3)] == [b.new_id("bet") for _ in range(3)]
        assert SequentialIdentityGenerator().new_id("bet") == "bet-000000000001"

    def test_clock_ticks(self):
        ids = SequentialIdentityGenerator()
        first, second = ids.timestamp(), ids.timestamp()
        assert first == "2025-01-01T00:00:01+00:00"
        assert second == "2025-01-01T00:00:02+00:00"

    def test_serials(self):
        ids = SequentialIdentityGenerator()
        assert ids.next_serial() == 1
        ids.reserve_serials(1005)
        assert ids.next_serial() == 1006
        ids.reserve_serials(10)
        assert ids.next_serial() == 1007


class TestSystem:
    def test_ids_unique(self):
        ids = SystemIdentityGenerator()
        generated = {ids.new_id("tx") for _ in range(500)}
        assert len(generated) == 500
        assert all(value.startswith("tx-") for value in generated)

    def test_ticket_code_format(self):
        code = SystemIdentityGenerator().ticket_code()
        assert re.fullmatch(r"TX-[A-Z0-9]{4}-[A-Z0-9]{4}", code)

    def test_timestamps_strictly_increase_on_frozen_clock(self):
        ids = FrozenClockGenerator()
        stamps = [ids.now() for _ in range(5)]
        assert all(a < b for a, b in zip(stamps, stamps[1:]))

    def test_timestamp_is_iso8601(self):
        stamp = SystemIdentityGenerator().timestamp()
        assert datetime.fromisoformat(stamp).tzinfo is not None
