"""Invariant checkers for the pool.

Each function returns True when the invariant holds over a persisted
``(PoolRecord, positions)`` view; ``check_all()`` returns the list of violated
invariant IDs (empty = all pass).

The constant-product rule is a transition invariant and is checked by
``k_non_decreasing()`` against the pre-swap product.
"""

from __future__ import annotations

from typing import Callable, Mapping

from ..state.balances import PubKey
from ..state.pool import PoolRecord, PoolStatus, PositionRecord
from .fees import FEE_PER_SHARE_SCALE

Positions = Mapping[PubKey, PositionRecord]


def inv_reserves_funded_when_shares(p: PoolRecord, _: Positions) -> bool:
    if p.total_shares == 0:
        return True
    return p.reserve_a > 0 and p.reserve_b > 0


def inv_reserves_empty_without_shares(p: PoolRecord, _: Positions) -> bool:
    if p.total_shares != 0:
        return True
    return p.reserve_a == 0 and p.reserve_b == 0


def inv_active_when_funded(p: PoolRecord, _: Positions) -> bool:
    if p.total_shares == 0:
        return True
    return p.status == PoolStatus.ACTIVE


def inv_shares_sum_to_total(p: PoolRecord, positions: Positions) -> bool:
    return sum(pos.shares for pos in positions.values()) == p.total_shares


def inv_fee_debt_not_ahead(p: PoolRecord, positions: Positions) -> bool:
    return all(
        pos.fee_debt_a <= p.acc_fee_per_share_a and pos.fee_debt_b <= p.acc_fee_per_share_b
        for pos in positions.values()
    )


def _claimable(owed: int, shares: int, acc: int, debt: int) -> int:
    return owed + (shares * (acc - debt)) // FEE_PER_SHARE_SCALE


def inv_fees_solvent(p: PoolRecord, positions: Positions) -> bool:
    owed_a = sum(
        _claimable(pos.fees_owed_a, pos.shares, p.acc_fee_per_share_a, pos.fee_debt_a)
        for pos in positions.values()
    )
    owed_b = sum(
        _claimable(pos.fees_owed_b, pos.shares, p.acc_fee_per_share_b, pos.fee_debt_b)
        for pos in positions.values()
    )
    return owed_a <= p.fee_balance_a and owed_b <= p.fee_balance_b


def inv_no_empty_positions(_: PoolRecord, positions: Positions) -> bool:
    return not any(pos.is_empty for pos in positions.values())


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[PoolRecord, Positions], bool]] = {
    "inv_reserves_funded_when_shares": inv_reserves_funded_when_shares,
    "inv_reserves_empty_without_shares": inv_reserves_empty_without_shares,
    "inv_active_when_funded": inv_active_when_funded,
    "inv_shares_sum_to_total": inv_shares_sum_to_total,
    "inv_fee_debt_not_ahead": inv_fee_debt_not_ahead,
    "inv_fees_solvent": inv_fees_solvent,
    "inv_no_empty_positions": inv_no_empty_positions,
}


def check_all(pool: PoolRecord, positions: Positions) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(pool, positions)
    ]


def k_non_decreasing(k_before: int, k_after: int) -> bool:
    """The reserve product must never fall across a swap."""
    return k_after >= k_before
