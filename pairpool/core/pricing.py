"""
Constant-product pricing.

This module exposes the swap quotes used by the controller with
deterministic rounding rules:

Algorithm Design:
- Type: Fixed-Point Integer Arithmetic / Deterministic Rounding
- Time Complexity: O(1) per quote
- Invariant: After each swap, x' * y' >= x * y (fees retained in the input reserve)
"""

from __future__ import annotations

from dataclasses import dataclass

from ..kernels.python.cpmm_swap import (
    price_impact_bps,
    spot_price,
    swap_exact_in as _kernel_swap_exact_in,
    swap_exact_out as _kernel_swap_exact_out,
)
from ..state.balances import Amount
from .errors import InvariantViolation
from .fixed_point import BPS_DENOM, mul_div, require_bps, require_uint

PRICE_SCALE = 10**18


@dataclass(frozen=True)
class SwapQuote:
    """Ephemeral result of pricing a swap; never persisted."""

    amount_in: Amount
    amount_out: Amount
    fee_amount: Amount
    net_in: Amount
    accrued_fee: Amount
    retained_fee: Amount
    new_reserve_in: Amount
    new_reserve_out: Amount
    k_before: int
    k_after: int

    @property
    def price_impact_bps(self) -> int:
        reserve_in = self.new_reserve_in + self.accrued_fee - self.amount_in
        reserve_out = self.new_reserve_out + self.amount_out
        return price_impact_bps(
            reserve_in=reserve_in,
            reserve_out=reserve_out,
            amount_in=self.amount_in,
            amount_out=self.amount_out,
        )


def quote_out(
    reserve_in: Amount,
    reserve_out: Amount,
    amount_in: Amount,
    fee_bps: int,
    claimable_fee_share_bps: int = 0,
) -> SwapQuote:
    """
    Quote the output of an exact-in swap.

        net_in = floor(amount_in * (10_000 - fee_bps) / 10_000)
        amount_out = floor(net_in * reserve_out / (reserve_in + net_in))

    Post-swap reserves:
        new_reserve_in = reserve_in + amount_in - accrued_fee
        new_reserve_out = reserve_out - amount_out

    Raises:
        InsufficientLiquidity: If either reserve is zero or the output rounds to zero
        InvariantViolation: If the quote would decrease the reserve product
    """
    res = _kernel_swap_exact_in(
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        amount_in=amount_in,
        fee_bps=fee_bps,
        claimable_fee_share_bps=claimable_fee_share_bps,
    )
    if res.k_after < res.k_before:
        raise InvariantViolation(["k_non_decreasing"])

    return SwapQuote(
        amount_in=res.gross_in,
        amount_out=res.amount_out,
        fee_amount=res.fee_total,
        net_in=res.net_in,
        accrued_fee=res.accrued_fee,
        retained_fee=res.retained_fee,
        new_reserve_in=res.new_reserve_in,
        new_reserve_out=res.new_reserve_out,
        k_before=res.k_before,
        k_after=res.k_after,
    )


def quote_in(
    reserve_in: Amount,
    reserve_out: Amount,
    amount_out: Amount,
    fee_bps: int,
    claimable_fee_share_bps: int = 0,
) -> SwapQuote:
    """
    Reverse quote: the smallest gross input whose exact-in quote delivers at least *amount_out*.

        net_required = ceil(reserve_in * amount_out / (reserve_out - amount_out))
        amount_in = ceil(net_required * 10_000 / (10_000 - fee_bps))

    The returned quote describes the exact-in swap of ``amount_in``, so its
    ``amount_out`` may exceed the requested amount by rounding.
    """
    res = _kernel_swap_exact_out(
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        amount_out=amount_out,
        fee_bps=fee_bps,
        claimable_fee_share_bps=claimable_fee_share_bps,
    )
    return quote_out(reserve_in, reserve_out, res.amount_in, fee_bps, claimable_fee_share_bps)


def min_amount_out(expected_out: Amount, slippage_bps: int) -> Amount:
    """Lowest acceptable output for a slippage tolerance: ``floor(expected * (1 - slippage))``."""
    require_uint("expected_out", expected_out)
    require_bps("slippage_bps", slippage_bps)
    return mul_div(expected_out, BPS_DENOM - slippage_bps, BPS_DENOM)


def spot_price_e18(reserve_in: Amount, reserve_out: Amount) -> int:
    """Units of the output asset per unit of the input asset, scaled by ``PRICE_SCALE``."""
    return spot_price(reserve_in=reserve_in, reserve_out=reserve_out, scale=PRICE_SCALE)
