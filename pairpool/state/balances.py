"""
Participant wallet balances outside the pool.

Implements BalanceTable[PubKey, Asset] -> Amount. The pool never reads this
table directly; it is the backing store of the in-memory asset-transfer
collaborator used by tests and simulations.
"""

from __future__ import annotations

from enum import Enum, unique
from typing import Dict, Tuple


# Type aliases
PubKey = str  # participant identifier
Amount = int  # Non-negative integer (arbitrary precision, range-checked by fixed_point)


@unique
class Asset(Enum):
    """The two sides of the pair."""
    A = "A"
    B = "B"

    @property
    def other(self) -> "Asset":
        return Asset.B if self is Asset.A else Asset.A


def parse_asset(value: object) -> Asset:
    """Accept an ``Asset`` or its string tag (case-insensitive)."""
    if isinstance(value, Asset):
        return value
    if isinstance(value, str) and value.strip().upper() in ("A", "B"):
        return Asset(value.strip().upper())
    raise ValueError(f"unknown asset: {value!r}")


class BalanceTable:
    """
    Balance table mapping (pubkey, asset) -> amount.

    Zero balances are omitted to keep the table sparse.
    """

    def __init__(self) -> None:
        self._balances: Dict[Tuple[PubKey, Asset], Amount] = {}

    def get(self, pubkey: PubKey, asset: Asset) -> Amount:
        """Get balance for (pubkey, asset). Returns 0 if not found."""
        return self._balances.get((pubkey, asset), 0)

    def set(self, pubkey: PubKey, asset: Asset, amount: Amount) -> None:
        """
        Set balance for (pubkey, asset).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((pubkey, asset), None)
        else:
            self._balances[(pubkey, asset)] = amount

    def add(self, pubkey: PubKey, asset: Asset, delta: int) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            ValueError: If resulting balance would be negative
        """
        current = self.get(pubkey, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance: {current} + {delta} = {new_balance} < 0"
            )
        self.set(pubkey, asset, new_balance)

    def subtract(self, pubkey: PubKey, asset: Asset, delta: Amount) -> None:
        """Subtract a non-negative amount from a balance."""
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(pubkey, asset, -delta)

    def total(self, asset: Asset) -> Amount:
        """Sum of all wallet balances of *asset*."""
        return sum(amount for (_, a), amount in self._balances.items() if a is asset)

    def get_all_balances(self) -> Dict[Tuple[PubKey, Asset], Amount]:
        """Return all balances."""
        return dict(self._balances)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
