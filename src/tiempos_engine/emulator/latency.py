"""Artificial round-trip delay for emulated backend calls."""

import asyncio

from tiempos_engine.common.config import TiemposSettings

READ = "read"
WRITE = "write"
COLLECTION = "collection"
AUTH = "auth"


class LatencyGate:
    """Delays the visible completion of each call by a per-kind amount.

    Not a queue: every wait is an independent timer, so concurrent calls
    complete in timer order rather than invocation order.
    """

    def __init__(
        self,
        read: float = 0.1,
        write: float = 0.2,
        collection: float = 0.3,
        auth: float = 0.8,
        scale: float = 1.0,
    ):
        self.delays = {
            READ: read,
            WRITE: write,
            COLLECTION: collection,
            AUTH: auth,
        }
        self.scale = scale

    @classmethod
    def from_settings(cls, settings: TiemposSettings) -> "LatencyGate":
        return cls(
            read=settings.latency_read,
            write=settings.latency_write,
            collection=settings.latency_collection,
            auth=settings.latency_auth,
            scale=settings.latency_scale,
        )

    def delay_for(self, kind: str) -> float:
        if kind not in self.delays:
            raise ValueError(f"Unknown latency kind: {kind!r}")
        return max(0.0, self.delays[kind] * self.scale)

    async def wait(self, kind: str) -> None:
        # sleep(0) still yields, keeping completion asynchronous when disabled
        await asyncio.sleep(self.delay_for(kind))
