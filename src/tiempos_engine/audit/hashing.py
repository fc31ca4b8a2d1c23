"""Content-integrity stamps for the append-only audit trail."""

import hashlib
import json
from typing import Any, Iterable, Optional

HASH_PREFIX = "sha256-"

# Fields left out of the stamp: id is assigned by storage, the others are the chain itself.
# Every other field, including caller extras such as ``category``, is covered.
UNHASHED_FIELDS = frozenset({"id", "hash", "previous_hash"})


def compute_event_hash(event: dict[str, Any], previous_hash: Optional[str]) -> str:
    """SHA-256 of the canonical JSON of the event content and its predecessor's hash."""
    canonical = json.dumps(
        {
            "event": {name: value for name, value in event.items() if name not in UNHASHED_FIELDS},
            "previous_hash": previous_hash,
        },
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return HASH_PREFIX + hashlib.sha256(canonical.encode()).hexdigest()


def verify_trail(rows: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """Walk the trail oldest→newest (by serial id), verify linkage and stamps."""
    events = sorted(rows, key=lambda r: r["id"])
    if not events:
        return {"valid": True, "events_checked": 0, "break_at": None}

    prev_hash = None
    for index, event in enumerate(events):
        if event.get("previous_hash") != prev_hash:
            return {"valid": False, "events_checked": index, "break_at": event["id"]}
        if event.get("hash") != compute_event_hash(event, prev_hash):
            return {"valid": False, "events_checked": index, "break_at": event["id"]}
        prev_hash = event["hash"]

    return {"valid": True, "events_checked": len(events), "break_at": None}
