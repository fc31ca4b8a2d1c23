"""Pydantic row schemas for the emulated tables.

Rows are stored and returned as plain dicts (the hosted service speaks
JSON); these models only validate and default payloads on the write path.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tiempos_engine.common.schemas import (
    AuditSeverity,
    BetStatus,
    DrawStatus,
    TransactionType,
    UserRole,
    UserStatus,
)


class RowModel(BaseModel):
    model_config = ConfigDict(extra="allow", use_enum_values=True)

    def to_row(self) -> dict[str, Any]:
        return self.model_dump()


class AppUserRow(RowModel):
    id: str
    auth_uid: Optional[str] = None
    email: Optional[str] = None
    name: str
    cedula: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    balance_bigint: int = Field(default=0, ge=0)
    currency: str = "CRC"
    status: UserStatus = UserStatus.ACTIVE
    issuer_id: Optional[str] = None
    created_at: str
    updated_at: str


class LedgerTransactionRow(RowModel):
    id: str
    ticket_code: str
    user_id: str
    amount_bigint: int
    balance_before: int
    balance_after: int
    type: TransactionType
    reference_id: Optional[str] = None
    created_at: str
    meta: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_balances(self) -> "LedgerTransactionRow":
        if self.balance_after != self.balance_before + self.amount_bigint:
            raise ValueError("balance_after must equal balance_before + amount_bigint")
        if self.type == TransactionType.CREDIT.value and self.amount_bigint < 0:
            raise ValueError("CREDIT transactions require a non-negative amount")
        if self.type == TransactionType.DEBIT.value and self.amount_bigint > 0:
            raise ValueError("DEBIT transactions require a non-positive amount")
        return self


class AuditEventRow(RowModel):
    id: int
    event_id: str
    timestamp: str
    actor_id: Optional[str] = None
    actor_role: Optional[str] = None
    actor_name: Optional[str] = None
    ip_address: Optional[str] = None
    device_fingerprint: Optional[str] = None
    type: Optional[str] = None
    action: str = ""
    severity: AuditSeverity = AuditSeverity.INFO
    target_resource: Optional[str] = None
    metadata: Optional[dict[str, Any]] = Field(default_factory=dict)
    previous_hash: Optional[str] = None
    hash: str = ""


class BetRow(RowModel):
    id: str
    user_id: str
    amount_bigint: int = Field(ge=0)
    status: BetStatus = BetStatus.PENDING
    created_at: str


class LotteryResultRow(RowModel):
    id: str
    date: str
    drawTime: str
    winningNumber: str = "--"
    isReventado: bool = False
    status: DrawStatus = DrawStatus.OPEN
    created_at: str


class NumberLimitRow(RowModel):
    id: str
    draw_type: str
    number: str
    max_amount: int
