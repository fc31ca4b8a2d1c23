"""Shared envelope types and enums for Tiempos-Engine."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from tiempos_engine.common.exceptions import TiemposError


class UserRole(str, Enum):
    SUPER_ADMIN = "SuperAdmin"
    VENDEDOR = "Vendedor"
    CLIENTE = "Cliente"


class UserStatus(str, Enum):
    ACTIVE = "Active"
    SUSPENDED = "Suspended"


class TransactionType(str, Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class DrawTime(str, Enum):
    MEDIODIA = "Mediodía (12:55)"
    TARDE = "Tarde (16:30)"
    NOCHE = "Noche (19:30)"


class DrawStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class BetStatus(str, Enum):
    PENDING = "PENDING"
    WON = "WON"
    LOST = "LOST"
    REFUNDED = "REFUNDED"


class AuditSeverity(str, Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"
    FORENSIC = "FORENSIC"


class AuditEventType(str, Enum):
    IDENTITY_REGISTER = "IDENTITY_REGISTER"
    IDENTITY_COLLISION = "IDENTITY_COLLISION"
    IDENTITY_VERIFICATION = "IDENTITY_VERIFICATION"
    SESSION_LOGIN = "SESSION_LOGIN"
    SESSION_FAILED = "SESSION_FAILED"
    TX_DEPOSIT = "TX_DEPOSIT"
    TX_WITHDRAWAL = "TX_WITHDRAWAL"
    GAME_BET = "GAME_BET"
    ADMIN_PURGE = "ADMIN_PURGE"
    ADMIN_BLOCK = "ADMIN_BLOCK"
    ADMIN_SETTINGS = "ADMIN_SETTINGS"
    SYSTEM_INTEGRITY = "SYSTEM_INTEGRITY"


class AuditCategory(str, Enum):
    AUTH = "AUTH"
    DATA = "DATA"
    SYSTEM = "SYSTEM"
    FINANCIAL = "FINANCIAL"
    ADMIN = "ADMIN"


@dataclass
class ApiError:
    """Error slot of a result envelope."""

    message: str
    code: str = "ERROR"

    @classmethod
    def from_exception(cls, exc: TiemposError) -> "ApiError":
        return cls(message=exc.message, code=exc.code)


@dataclass
class Result:
    """Uniform envelope returned by every terminal call.

    ``data`` and ``error`` are mutually exclusive: a failed call carries
    ``data=None``.
    """

    data: Any = None
    error: Optional[ApiError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Any) -> "Result":
        return cls(data=data, error=None)

    @classmethod
    def failure(cls, exc: TiemposError) -> "Result":
        return cls(data=None, error=ApiError.from_exception(exc))
