"""
Reserve balances of the pool.

``ReserveLedger`` is the single choke point for reserve mutation: the
controller credits and debits through it, and nothing else writes the two
balances. A debit that would go below zero fails without mutating anything.
"""

from __future__ import annotations

from typing import Tuple

from ..core.errors import InsufficientReserves
from ..core.fixed_point import checked_add, mul_wide, require_uint
from .balances import Amount, Asset


class ReserveLedger:
    """Holds the two reserve balances of the pair."""

    def __init__(self, reserve_a: Amount = 0, reserve_b: Amount = 0) -> None:
        self._reserves = {
            Asset.A: require_uint("reserve_a", reserve_a),
            Asset.B: require_uint("reserve_b", reserve_b),
        }

    def get(self, asset: Asset) -> Amount:
        return self._reserves[asset]

    def reserves(self) -> Tuple[Amount, Amount]:
        """Return ``(reserve_a, reserve_b)``."""
        return self._reserves[Asset.A], self._reserves[Asset.B]

    def oriented(self, asset_in: Asset) -> Tuple[Amount, Amount]:
        """Return ``(reserve_in, reserve_out)`` for a swap paying *asset_in*."""
        return self._reserves[asset_in], self._reserves[asset_in.other]

    def product(self) -> int:
        """The constant-product ``k = reserve_a * reserve_b`` (full width)."""
        return mul_wide(self._reserves[Asset.A], self._reserves[Asset.B])

    def credit(self, asset: Asset, amount: Amount) -> None:
        """Add a non-negative amount to one reserve."""
        require_uint("amount", amount)
        self._reserves[asset] = checked_add(self._reserves[asset], amount)

    def debit(self, asset: Asset, amount: Amount) -> None:
        """
        Remove a non-negative amount from one reserve.

        Raises:
            InsufficientReserves: If the reserve would go below zero
        """
        require_uint("amount", amount)
        current = self._reserves[asset]
        if amount > current:
            raise InsufficientReserves(
                f"Insufficient {asset.value} reserve: {current} - {amount} < 0"
            )
        self._reserves[asset] = current - amount

    def clone(self) -> "ReserveLedger":
        return ReserveLedger(*self.reserves())

    def __repr__(self) -> str:
        reserve_a, reserve_b = self.reserves()
        return f"ReserveLedger(A={reserve_a}, B={reserve_b})"
