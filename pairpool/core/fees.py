"""
Fee accrual ledger (deterministic, integer-only).

Swap fees streamed to liquidity providers are tracked with a global
per-share accumulator and a per-participant snapshot ("fee debt"):

    claimable = fees_owed + floor(shares * (acc_fee_per_share - fee_debt) / FEE_PER_SHARE_SCALE)

Each accrual divides ``amount * FEE_PER_SHARE_SCALE + dust`` by the current
share supply; the remainder is carried as scaled dust into the next accrual,
so value is never stranded and the sum of all claims never exceeds the fee
balance held by the pool.

A participant must be checkpointed with their *old* share balance before any
share change; the accrued amount moves into ``fees_owed`` and the snapshot is
reset to the current accumulator.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Tuple

from ..state.balances import Amount, Asset, PubKey
from .errors import NothingToClaim
from .fixed_point import checked_add, checked_sub, mul_div, require_uint


FEE_PER_SHARE_SCALE = 10**18


@dataclass(frozen=True)
class FeeCheckpoint:
    """Per-participant fee snapshot."""

    fee_debt_a: int = 0
    fee_debt_b: int = 0
    fees_owed_a: int = 0
    fees_owed_b: int = 0

    def __post_init__(self) -> None:
        for name in ("fee_debt_a", "fee_debt_b", "fees_owed_a", "fees_owed_b"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")

    def debt(self, asset: Asset) -> int:
        return self.fee_debt_a if asset is Asset.A else self.fee_debt_b

    def owed(self, asset: Asset) -> int:
        return self.fees_owed_a if asset is Asset.A else self.fees_owed_b


@dataclass(frozen=True)
class AccrualResult:
    amount: int
    delta_acc: int
    dust_carried: int


class FeeAccrualLedger:
    """Per-asset fee accumulators plus per-participant snapshots."""

    def __init__(self) -> None:
        self._acc: Dict[Asset, int] = {Asset.A: 0, Asset.B: 0}
        self._balance: Dict[Asset, Amount] = {Asset.A: 0, Asset.B: 0}
        self._dust: Dict[Asset, int] = {Asset.A: 0, Asset.B: 0}
        self._checkpoints: Dict[PubKey, FeeCheckpoint] = {}

    # -- Reads -------------------------------------------------------------

    def acc_fee_per_share(self, asset: Asset) -> int:
        return self._acc[asset]

    def fee_balance(self, asset: Asset) -> Amount:
        """Fees held by the pool for claims (distributed + dust)."""
        return self._balance[asset]

    def dust(self, asset: Asset) -> int:
        """Undistributed remainder, scaled by ``FEE_PER_SHARE_SCALE``."""
        return self._dust[asset]

    def checkpoint_of(self, participant: PubKey) -> FeeCheckpoint:
        return self._checkpoints.get(participant, self._fresh_checkpoint())

    def checkpoints(self) -> Dict[PubKey, FeeCheckpoint]:
        return dict(self._checkpoints)

    def pending(self, participant: PubKey, shares: Amount) -> Tuple[Amount, Amount]:
        """Claimable ``(fee_a, fee_b)`` for a holder of *shares*, without mutating."""
        require_uint("shares", shares)
        cp = self._checkpoints.get(participant)
        if cp is None:
            return 0, 0
        return (
            cp.fees_owed_a + self._accrued_since(Asset.A, cp.fee_debt_a, shares),
            cp.fees_owed_b + self._accrued_since(Asset.B, cp.fee_debt_b, shares),
        )

    # -- Mutations ---------------------------------------------------------

    def accrue(self, asset: Asset, amount: Amount, total_shares: Amount) -> AccrualResult:
        """Distribute *amount* of *asset* over *total_shares* (dust carried)."""
        require_uint("amount", amount)
        require_uint("total_shares", total_shares)
        if amount == 0:
            return AccrualResult(amount=0, delta_acc=0, dust_carried=self._dust[asset])

        self._balance[asset] = checked_add(self._balance[asset], amount)
        total_scaled = checked_add(mul_div(amount, FEE_PER_SHARE_SCALE, 1), self._dust[asset])

        if total_shares == 0:
            self._dust[asset] = total_scaled
            return AccrualResult(amount=amount, delta_acc=0, dust_carried=total_scaled)

        delta_acc = total_scaled // total_shares
        self._dust[asset] = total_scaled - delta_acc * total_shares
        self._acc[asset] = checked_add(self._acc[asset], delta_acc)
        return AccrualResult(amount=amount, delta_acc=delta_acc, dust_carried=self._dust[asset])

    def checkpoint(self, participant: PubKey, shares: Amount) -> FeeCheckpoint:
        """Move fees accrued on *shares* into ``fees_owed`` and reset the snapshot."""
        require_uint("shares", shares)
        cp = self._checkpoints.get(participant)
        if cp is None:
            cp = self._fresh_checkpoint()
        else:
            cp = FeeCheckpoint(
                fee_debt_a=self._acc[Asset.A],
                fee_debt_b=self._acc[Asset.B],
                fees_owed_a=cp.fees_owed_a + self._accrued_since(Asset.A, cp.fee_debt_a, shares),
                fees_owed_b=cp.fees_owed_b + self._accrued_since(Asset.B, cp.fee_debt_b, shares),
            )
        self._checkpoints[participant] = cp
        return cp

    def claim(self, participant: PubKey, shares: Amount) -> Tuple[Amount, Amount]:
        """
        Checkpoint and pay out everything owed to *participant*.

        Raises:
            NothingToClaim: If nothing is owed in either asset
        """
        cp = self.checkpoint(participant, shares)
        fee_a, fee_b = cp.fees_owed_a, cp.fees_owed_b
        if fee_a == 0 and fee_b == 0:
            raise NothingToClaim(f"{participant} has no accrued fees")
        self._balance[Asset.A] = checked_sub(self._balance[Asset.A], fee_a)
        self._balance[Asset.B] = checked_sub(self._balance[Asset.B], fee_b)
        self._checkpoints[participant] = replace(cp, fees_owed_a=0, fees_owed_b=0)
        return fee_a, fee_b

    def forget_if_empty(self, participant: PubKey, shares: Amount) -> None:
        """Drop the snapshot of a participant with no shares and nothing owed."""
        cp = self._checkpoints.get(participant)
        if cp is not None and shares == 0 and cp.fees_owed_a == 0 and cp.fees_owed_b == 0:
            del self._checkpoints[participant]

    def restore(
        self,
        *,
        acc: Dict[Asset, int],
        balance: Dict[Asset, Amount],
        dust: Dict[Asset, int],
        checkpoints: Dict[PubKey, FeeCheckpoint],
    ) -> None:
        """Load persisted accumulator state (used when decoding snapshots)."""
        for asset in Asset:
            self._acc[asset] = require_uint("acc_fee_per_share", acc[asset])
            self._balance[asset] = require_uint("fee_balance", balance[asset])
            self._dust[asset] = require_uint("fee_dust", dust[asset])
        self._checkpoints = dict(checkpoints)

    def clone(self) -> "FeeAccrualLedger":
        copy = FeeAccrualLedger()
        copy.restore(acc=self._acc, balance=self._balance, dust=self._dust, checkpoints=self._checkpoints)
        return copy

    # -- Internals ---------------------------------------------------------

    def _fresh_checkpoint(self) -> FeeCheckpoint:
        return FeeCheckpoint(fee_debt_a=self._acc[Asset.A], fee_debt_b=self._acc[Asset.B])

    def _accrued_since(self, asset: Asset, fee_debt: int, shares: Amount) -> Amount:
        growth = self._acc[asset] - fee_debt
        if growth < 0:
            raise AssertionError("fee_debt ahead of accumulator")
        return mul_div(shares, growth, FEE_PER_SHARE_SCALE)

    def __repr__(self) -> str:
        return (
            f"FeeAccrualLedger(balance_a={self._balance[Asset.A]}, "
            f"balance_b={self._balance[Asset.B]}, holders={len(self._checkpoints)})"
        )
