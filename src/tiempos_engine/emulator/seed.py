"""Seed fixtures for the in-memory store.

Hand-authored test identities come first in their role collections,
followed by a synthetic batch per role, so deterministic and pseudo-random
fixtures coexist predictably.
"""

import random
from datetime import datetime, timedelta
from typing import Any

from tiempos_engine.audit.hashing import compute_event_hash
from tiempos_engine.common.schemas import (
    AuditEventType,
    AuditSeverity,
    DrawStatus,
    DrawTime,
    TransactionType,
    UserRole,
    UserStatus,
)
from tiempos_engine.emulator.identity import IdentityGenerator

ADMIN_PROFILE_ID = "app-user-001"
ADMIN_AUTH_UID = "mock-auth-uid-001"
ADMIN_EMAIL = "admin@tiempos.local"

TEST_VENDOR_ID = "test-vendor-01"
TEST_VENDOR_AUTH_UID = "auth-vendor-test"
TEST_VENDOR_EMAIL = "vendedor@test.com"

TEST_PLAYER_ID = "test-player-01"
TEST_PLAYER_AUTH_UID = "auth-player-test"
TEST_PLAYER_EMAIL = "jugador@test.com"

SUSPENDED_RATIO = 0.2
LEDGER_FIXTURES = 15

# Leading digit of synthetic cedulas, one per role so seeded identities never collide
_CEDULA_PREFIX = {UserRole.CLIENTE: "1", UserRole.VENDEDOR: "5"}


def _profile(ts: str, **fields: Any) -> dict[str, Any]:
    return {
        "balance_bigint": 0,
        "currency": "CRC",
        "status": UserStatus.ACTIVE.value,
        "issuer_id": ADMIN_PROFILE_ID,
        "created_at": ts,
        "updated_at": ts,
        **fields,
    }


def build_admin(ts: str) -> dict[str, Any]:
    return _profile(
        ts,
        id=ADMIN_PROFILE_ID,
        auth_uid=ADMIN_AUTH_UID,
        email=ADMIN_EMAIL,
        name="Admin PHRONT (Demo)",
        role=UserRole.SUPER_ADMIN.value,
        cedula="1-1111-1111",
        phone="+506 8888-8888",
        balance_bigint=5_000_000,
        issuer_id=None,
    )


def build_test_vendor(ts: str) -> dict[str, Any]:
    return _profile(
        ts,
        id=TEST_VENDOR_ID,
        auth_uid=TEST_VENDOR_AUTH_UID,
        email=TEST_VENDOR_EMAIL,
        name="Vendedor Test (Purple)",
        role=UserRole.VENDEDOR.value,
        cedula="2-2222-2222",
        phone="+506 2222-2222",
        balance_bigint=2_500_000,
    )


def build_test_player(ts: str) -> dict[str, Any]:
    return _profile(
        ts,
        id=TEST_PLAYER_ID,
        auth_uid=TEST_PLAYER_AUTH_UID,
        email=TEST_PLAYER_EMAIL,
        name="Jugador Test (Cyan)",
        role=UserRole.CLIENTE.value,
        cedula="3-3333-3333",
        phone="+506 3333-3333",
        balance_bigint=50_000,
        issuer_id=TEST_VENDOR_ID,
    )


def generate_users(
    role: UserRole,
    count: int,
    anchor: datetime,
    history_seconds: int,
    rng: random.Random,
) -> list[dict[str, Any]]:
    """Synthetic profiles with random balances, ~80% Active, created in the past."""
    slug = role.value.lower()
    prefix = _CEDULA_PREFIX[role]
    users = []
    for i in range(count):
        created = anchor - timedelta(seconds=rng.random() * history_seconds)
        status = UserStatus.SUSPENDED if rng.random() < SUSPENDED_RATIO else UserStatus.ACTIVE
        users.append({
            "id": f"{slug}-{i}",
            "auth_uid": f"auth-{role.value}-{i}",
            "email": f"{slug}{i}@cyber.net",
            "name": f"{role.value} Unidad {i + 100}",
            "cedula": f"{prefix}-0{i + 200}-{i + 300}",
            "phone": f"+506 8{i}00-{i}000",
            "role": role.value,
            "balance_bigint": rng.randrange(1_000_000),
            "currency": "CRC",
            "status": status.value,
            "issuer_id": ADMIN_PROFILE_ID,
            "created_at": created.isoformat(),
            "updated_at": anchor.isoformat(),
        })
    return users


def build_results(anchor: datetime) -> list[dict[str, Any]]:
    today = anchor.date().isoformat()
    return [
        {
            "id": f"res-{n}",
            "date": today,
            "drawTime": draw.value,
            "winningNumber": "--",
            "isReventado": False,
            "status": DrawStatus.OPEN.value,
            "created_at": anchor.isoformat(),
        }
        for n, draw in enumerate(DrawTime, start=1)
    ]


def build_ledger(anchor: datetime, ids: IdentityGenerator) -> list[dict[str, Any]]:
    """Alternating admin deposits and bet debits, one day apart, newest first."""
    rows = []
    for i in range(LEDGER_FIXTURES):
        credit = i % 2 == 0
        amount = 500_000 if credit else -250_000
        after = 5_000_000
        rows.append({
            "id": f"tx-{i}",
            "ticket_code": ids.ticket_code(),
            "user_id": ADMIN_PROFILE_ID,
            "amount_bigint": amount,
            "balance_before": after - amount,
            "balance_after": after,
            "type": (TransactionType.CREDIT if credit else TransactionType.DEBIT).value,
            "reference_id": f"ref-{i}",
            "created_at": (anchor - timedelta(days=i)).isoformat(),
            "meta": {"description": "Depósito vía Admin" if credit else "Colocación de Apuesta"},
        })
    return rows


def _audit_fixtures(anchor: datetime) -> list[dict[str, Any]]:
    """Forensic trail fixtures, oldest first."""
    admin = {
        "actor_id": ADMIN_PROFILE_ID,
        "actor_role": UserRole.SUPER_ADMIN.value,
        "actor_name": "Admin PHRONT",
        "ip_address": "10.0.0.5",
    }
    return [
        {
            **admin,
            "event_id": "evt-log-005",
            "timestamp": (anchor - timedelta(minutes=120)).isoformat(),
            "device_fingerprint": "Chrome / MacOS",
            "type": AuditEventType.SESSION_LOGIN.value,
            "action": "AUTH_SUCCESS_MFA",
            "severity": AuditSeverity.SUCCESS.value,
            "target_resource": "session-token",
            "metadata": {"method": "PASSWORD + PIN"},
        },
        {
            "event_id": "evt-bet-004",
            "timestamp": (anchor - timedelta(minutes=60)).isoformat(),
            "actor_id": "cliente-10",
            "actor_role": UserRole.CLIENTE.value,
            "actor_name": "Cliente Unidad 110",
            "ip_address": "186.15.22.101",
            "device_fingerprint": "Android / Chrome",
            "type": AuditEventType.GAME_BET.value,
            "action": "BET_PLACED",
            "severity": AuditSeverity.INFO.value,
            "target_resource": "bet-ref-332",
            "metadata": {"number": "42", "amount": 5000, "draw": "NOCHE"},
        },
        {
            **admin,
            "event_id": "evt-tx-003",
            "timestamp": (anchor - timedelta(minutes=30)).isoformat(),
            "device_fingerprint": "Chrome / MacOS",
            "type": AuditEventType.TX_DEPOSIT.value,
            "action": "MANUAL_RECHARGE_EXEC",
            "severity": AuditSeverity.CRITICAL.value,
            "target_resource": "cliente-5",
            "metadata": {"amount_cents": 5_000_000, "previous_balance": 200, "new_balance": 5_000_200},
        },
        {
            "event_id": "evt-col-002",
            "timestamp": (anchor - timedelta(minutes=5)).isoformat(),
            "actor_id": "vendedor-2",
            "actor_role": UserRole.VENDEDOR.value,
            "actor_name": "Vendedor Unidad 102",
            "ip_address": "192.168.1.45",
            "device_fingerprint": "Mobile Safari / iOS",
            "type": AuditEventType.IDENTITY_COLLISION.value,
            "action": "ATTEMPT_REGISTER_DUAL_ROLE",
            "severity": AuditSeverity.CRITICAL.value,
            "target_resource": "cedula:1-0202-0302",
            "metadata": {
                "attempted_role": UserRole.VENDEDOR.value,
                "existing_role": UserRole.CLIENTE.value,
                "error": "CROSS_ROLE_VIOLATION_BLOCK",
            },
        },
        {
            **admin,
            "event_id": "evt-purge-001",
            "timestamp": anchor.isoformat(),
            "device_fingerprint": "Chrome / MacOS / SecureTerm",
            "type": AuditEventType.ADMIN_PURGE.value,
            "action": "SYSTEM_DATA_PURGE_INITIATED",
            "severity": AuditSeverity.FORENSIC.value,
            "target_resource": "SYSTEM_DB",
            "metadata": {"confirmation_phrase": "CONFIRMAR PURGA TOTAL", "snapshot_id": "snap-992"},
        },
    ]


AUDIT_FIRST_SERIAL = 1001


def build_audit_trail(anchor: datetime) -> list[dict[str, Any]]:
    """Hash-chained fixture events, newest first (head of the collection)."""
    trail = []
    prev_hash = None
    for serial, event in enumerate(_audit_fixtures(anchor), start=AUDIT_FIRST_SERIAL):
        event["id"] = serial
        event["previous_hash"] = prev_hash
        event["hash"] = compute_event_hash(event, prev_hash)
        prev_hash = event["hash"]
        trail.insert(0, event)
    return trail
