"""
Liquidity-share balances.

``ShareLedger`` maps participant -> shares and keeps ``total_shares`` equal to
the sum of all balances at all times. Mint and burn sizing is delegated to the
``lp_math`` kernel; the ledger only applies the results.
"""

from __future__ import annotations

from typing import Dict, Tuple

from ..core.errors import InsufficientShares
from ..core.fixed_point import checked_add, require_uint
from ..kernels.python.lp_math import MintSharesResult, burn_shares, mint_shares
from .balances import Amount, PubKey


class ShareLedger:
    """
    Share table mapping participant -> share balance.

    Notes:
    - Balances are always non-negative.
    - Zero balances are omitted to keep the table sparse.
    """

    def __init__(self) -> None:
        self._balances: Dict[PubKey, Amount] = {}
        self._total_shares: Amount = 0

    @property
    def total_shares(self) -> Amount:
        return self._total_shares

    def balance_of(self, participant: PubKey) -> Amount:
        """Get share balance. Returns 0 if not found."""
        return self._balances.get(participant, 0)

    def positions(self) -> Dict[PubKey, Amount]:
        """Return all non-zero share balances."""
        return dict(self._balances)

    def quote_mint(
        self,
        amount_a: Amount,
        amount_b: Amount,
        reserves: Tuple[Amount, Amount],
    ) -> MintSharesResult:
        """Size a reserve-ratio deposit against the current supply without mutating."""
        reserve_a, reserve_b = reserves
        return mint_shares(
            reserve_a=reserve_a,
            reserve_b=reserve_b,
            total_shares=self._total_shares,
            amount_a_desired=amount_a,
            amount_b_desired=amount_b,
        )

    def mint(
        self,
        participant: PubKey,
        amount_a: Amount,
        amount_b: Amount,
        reserves: Tuple[Amount, Amount],
    ) -> MintSharesResult:
        """
        Issue shares for a deposit of ``(amount_a, amount_b)`` into a pool holding *reserves*.

        The first deposit seeds the supply with ``floor(sqrt(amount_a * amount_b))``;
        later deposits are trimmed to the reserve ratio (see ``lp_math.mint_shares``).
        """
        result = self.quote_mint(amount_a, amount_b, reserves)
        self.issue(participant, result.shares_minted)
        return result

    def issue(self, participant: PubKey, shares: Amount) -> None:
        """Credit already-sized shares to *participant*."""
        require_uint("shares", shares)
        if shares == 0:
            raise ValueError("cannot issue zero shares")
        self._total_shares = checked_add(self._total_shares, shares)
        self._balances[participant] = self.balance_of(participant) + shares

    def burn(
        self,
        participant: PubKey,
        shares: Amount,
        reserves: Tuple[Amount, Amount],
    ) -> Tuple[Amount, Amount]:
        """
        Burn shares and return ``(amount_a_out, amount_b_out)``.

        Raises:
            InsufficientShares: If *participant* holds fewer than *shares*
            ZeroLiquidityOut: If either output rounds to zero
        """
        require_uint("shares", shares)
        held = self.balance_of(participant)
        if shares > held:
            raise InsufficientShares(f"{participant} holds {held} shares, cannot burn {shares}")
        reserve_a, reserve_b = reserves
        out = burn_shares(
            shares=shares,
            reserve_a=reserve_a,
            reserve_b=reserve_b,
            total_shares=self._total_shares,
        )
        remaining = held - shares
        if remaining == 0:
            self._balances.pop(participant, None)
        else:
            self._balances[participant] = remaining
        self._total_shares -= shares
        return out.amount_a_out, out.amount_b_out

    def verify_total(self) -> bool:
        """Verify the sum of balances equals the recorded total."""
        return sum(self._balances.values()) == self._total_shares

    def clone(self) -> "ShareLedger":
        copy = ShareLedger()
        copy._balances = dict(self._balances)
        copy._total_shares = self._total_shares
        return copy

    def __repr__(self) -> str:
        return f"ShareLedger({len(self._balances)} holders, total={self._total_shares})"
