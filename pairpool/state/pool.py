"""
Persisted pool records.

The durable state of a pool is exactly one ``PoolRecord`` plus one
``PositionRecord`` per participant with a non-empty position. Both are frozen
snapshots; the live, mutable tables are ``ReserveLedger``, ``ShareLedger`` and
``FeeAccrualLedger``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique

from .balances import Amount, PubKey


@unique
class PoolStatus(Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"


def _require_non_negative(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


@dataclass(frozen=True)
class PoolRecord:
    """Global pool state (reserves, share supply, fee accumulators)."""

    status: PoolStatus
    reserve_a: Amount
    reserve_b: Amount
    total_shares: Amount
    acc_fee_per_share_a: int
    acc_fee_per_share_b: int
    fee_balance_a: Amount
    fee_balance_b: Amount
    fee_dust_a: Amount
    fee_dust_b: Amount

    def __post_init__(self) -> None:
        for name in (
            "reserve_a",
            "reserve_b",
            "total_shares",
            "acc_fee_per_share_a",
            "acc_fee_per_share_b",
            "fee_balance_a",
            "fee_balance_b",
            "fee_dust_a",
            "fee_dust_b",
        ):
            _require_non_negative(name, getattr(self, name))
        if self.status == PoolStatus.UNINITIALIZED and (self.total_shares or self.reserve_a or self.reserve_b):
            raise ValueError("uninitialized pool must be empty")


@dataclass(frozen=True)
class PositionRecord:
    """One participant's claim: shares plus fee snapshot per asset."""

    participant: PubKey
    shares: Amount
    fee_debt_a: int
    fee_debt_b: int
    fees_owed_a: Amount
    fees_owed_b: Amount

    def __post_init__(self) -> None:
        if not isinstance(self.participant, str) or not self.participant:
            raise ValueError("participant must be a non-empty string")
        for name in ("shares", "fee_debt_a", "fee_debt_b", "fees_owed_a", "fees_owed_b"):
            _require_non_negative(name, getattr(self, name))

    @property
    def is_empty(self) -> bool:
        return self.shares == 0 and self.fees_owed_a == 0 and self.fees_owed_b == 0


def empty_pool_record() -> PoolRecord:
    """The pool as created at deployment: no reserves, no shares."""
    return PoolRecord(
        status=PoolStatus.UNINITIALIZED,
        reserve_a=0,
        reserve_b=0,
        total_shares=0,
        acc_fee_per_share_a=0,
        acc_fee_per_share_b=0,
        fee_balance_a=0,
        fee_balance_b=0,
        fee_dust_a=0,
        fee_dust_b=0,
    )
