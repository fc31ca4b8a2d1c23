"""Durable key-value slots holding the serialized auth session."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


class SessionSlot:
    """Minimal string key-value store (browser localStorage semantics)."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemorySlot(SessionSlot):
    """Process-local slot, used by tests and throwaway clients."""

    def __init__(self):
        self._items: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)


class FileSlot(SessionSlot):
    """JSON file on disk; survives process restarts."""

    def __init__(self, path: str):
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError):
            logger.warning("Unreadable session store at %s, treating as empty", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, items: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(items), encoding="utf-8")

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        items = self._read()
        items[key] = value
        self._write(items)

    def remove(self, key: str) -> None:
        items = self._read()
        if items.pop(key, None) is not None:
            self._write(items)


def load_session(slot: SessionSlot, key: str) -> Optional[dict[str, Any]]:
    """Decode the stored ``{access_token, user}`` record, if any."""
    raw = slot.get(key)
    if not raw:
        return None
    try:
        session = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding malformed session record under %s", key)
        return None
    if not isinstance(session, dict) or "access_token" not in session:
        return None
    return session


def store_session(slot: SessionSlot, key: str, session: dict[str, Any]) -> None:
    slot.set(key, json.dumps(session, ensure_ascii=False))
