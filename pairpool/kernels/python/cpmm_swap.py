"""
CPMM swap kernel.

- The fee is charged on the *gross* input: ``net_in = floor(gross_in * (10_000 - fee_bps) / 10_000)``
  and ``fee_total = gross_in - net_in`` (equivalently ``ceil(gross_in * fee_bps / 10_000)``).
- Pricing uses ``net_in`` (Uniswap-v2 style).
- A share of the fee (``claimable_fee_share_bps``, floor) is taken out of the
  reserves for the fee accumulator; the rest stays in the input reserve.

The output is computed twice, once in the direct form and once in the product
form, and the two must agree:

    floor(net_in * R_out / (R_in + net_in)) == R_out - ceil(R_in * R_out / (R_in + net_in))

because ``net_in * R_out / (R_in + net_in) = R_out - R_in * R_out / (R_in + net_in)`` and
``floor(n - x) = n - ceil(x)`` for integer ``n``. Both put the rounding error on
the pool's side.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...core.errors import InsufficientLiquidity
from ...core.fixed_point import (
    BPS_DENOM,
    apply_bps,
    checked_add,
    checked_sub,
    mul_div,
    mul_div_up,
    mul_wide,
    require_bps,
    require_uint,
)


@dataclass(frozen=True)
class SwapExactInResult:
    amount_out: int
    fee_total: int
    accrued_fee: int
    retained_fee: int
    net_in: int
    gross_in: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


@dataclass(frozen=True)
class SwapExactOutResult:
    amount_in: int
    amount_out: int
    fee_total: int
    accrued_fee: int
    retained_fee: int
    net_in: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


def compute_net_in(*, gross_in: int, fee_bps: int) -> int:
    """
    Compute ``net_in = floor(gross_in * (10_000 - fee_bps) / 10_000)``.
    """
    require_uint("gross_in", gross_in)
    require_bps("fee_bps", fee_bps)
    return mul_div(gross_in, BPS_DENOM - fee_bps, BPS_DENOM)


def compute_fee_total(*, gross_in: int, fee_bps: int) -> int:
    """
    Compute ``fee_total = gross_in - net_in = ceil(gross_in * fee_bps / 10_000)``.
    """
    return checked_sub(gross_in, compute_net_in(gross_in=gross_in, fee_bps=fee_bps))


def split_fee(*, fee_total: int, claimable_fee_share_bps: int) -> tuple[int, int]:
    """Return ``(accrued_fee, retained_fee)``; the accrued part is floored."""
    require_uint("fee_total", fee_total)
    accrued = apply_bps(fee_total, claimable_fee_share_bps)
    if accrued > fee_total:
        raise AssertionError("fee split over-distributed")
    return accrued, fee_total - accrued


def amount_out_direct(*, reserve_in: int, reserve_out: int, net_in: int) -> int:
    """``floor(net_in * reserve_out / (reserve_in + net_in))``."""
    return mul_div(net_in, reserve_out, checked_add(reserve_in, net_in))


def amount_out_product(*, reserve_in: int, reserve_out: int, net_in: int) -> int:
    """``reserve_out - ceil(reserve_in * reserve_out / (reserve_in + net_in))``."""
    remaining = mul_div_up(reserve_in, reserve_out, checked_add(reserve_in, net_in))
    return checked_sub(reserve_out, remaining)


def _require_reserves(reserve_in: int, reserve_out: int) -> None:
    require_uint("reserve_in", reserve_in)
    require_uint("reserve_out", reserve_out)
    if reserve_in == 0 or reserve_out == 0:
        raise InsufficientLiquidity("cannot swap against an empty reserve")


def swap_exact_in(
    *,
    reserve_in: int,
    reserve_out: int,
    amount_in: int,
    fee_bps: int,
    claimable_fee_share_bps: int = 0,
) -> SwapExactInResult:
    """
    Exact-in swap quote + post-state.

    Raises InsufficientLiquidity on an empty reserve or if the swap would produce a zero output.
    """
    _require_reserves(reserve_in, reserve_out)
    require_uint("amount_in", amount_in)
    require_bps("fee_bps", fee_bps)
    require_bps("claimable_fee_share_bps", claimable_fee_share_bps)
    if amount_in <= 0:
        raise ValueError("amount_in must be positive")

    k_before = mul_wide(reserve_in, reserve_out)

    net_in = compute_net_in(gross_in=amount_in, fee_bps=fee_bps)
    if net_in <= 0:
        raise InsufficientLiquidity("net_in is zero after fees (trade too small)")
    fee_total = amount_in - net_in
    accrued_fee, retained_fee = split_fee(fee_total=fee_total, claimable_fee_share_bps=claimable_fee_share_bps)

    amount_out = amount_out_direct(reserve_in=reserve_in, reserve_out=reserve_out, net_in=net_in)
    if amount_out != amount_out_product(reserve_in=reserve_in, reserve_out=reserve_out, net_in=net_in):
        raise AssertionError("direct and product quote forms disagree")
    if amount_out <= 0:
        raise InsufficientLiquidity("amount_out is zero (trade too small)")
    if amount_out >= reserve_out:
        raise InsufficientLiquidity("amount_out would drain reserve_out")

    new_reserve_in = checked_add(reserve_in, checked_sub(amount_in, accrued_fee))
    new_reserve_out = checked_sub(reserve_out, amount_out)
    k_after = mul_wide(new_reserve_in, new_reserve_out)

    return SwapExactInResult(
        amount_out=amount_out,
        fee_total=fee_total,
        accrued_fee=accrued_fee,
        retained_fee=retained_fee,
        net_in=net_in,
        gross_in=amount_in,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=k_before,
        k_after=k_after,
    )


def swap_exact_out(
    *,
    reserve_in: int,
    reserve_out: int,
    amount_out: int,
    fee_bps: int,
    claimable_fee_share_bps: int = 0,
) -> SwapExactOutResult:
    """Exact-out swap quote + post-state (minimal gross input, ceil rounding)."""
    _require_reserves(reserve_in, reserve_out)
    require_uint("amount_out", amount_out)
    require_bps("fee_bps", fee_bps)
    require_bps("claimable_fee_share_bps", claimable_fee_share_bps)
    if amount_out <= 0:
        raise ValueError("amount_out must be positive")
    if amount_out >= reserve_out:
        raise InsufficientLiquidity("cannot drain full reserve_out")
    if fee_bps == BPS_DENOM:
        raise InsufficientLiquidity("cannot quote an input with a 100% fee")

    # net_required = ceil(reserve_in * amount_out / (reserve_out - amount_out))
    net_required = mul_div_up(reserve_in, amount_out, reserve_out - amount_out)

    # amount_in = ceil(net_required * 10_000 / (10_000 - fee_bps))
    amount_in = mul_div_up(net_required, BPS_DENOM, BPS_DENOM - fee_bps)

    # floor(amount_in * (10_000 - fee_bps) / 10_000) >= net_required by construction.
    net_in = compute_net_in(gross_in=amount_in, fee_bps=fee_bps)
    if net_in < net_required:
        raise AssertionError("computed amount_in insufficient for desired amount_out")
    quoted = amount_out_direct(reserve_in=reserve_in, reserve_out=reserve_out, net_in=net_in)
    if quoted < amount_out:
        raise AssertionError("computed amount_in insufficient for desired amount_out")

    fee_total = amount_in - net_in
    accrued_fee, retained_fee = split_fee(fee_total=fee_total, claimable_fee_share_bps=claimable_fee_share_bps)

    k_before = mul_wide(reserve_in, reserve_out)
    new_reserve_in = checked_add(reserve_in, checked_sub(amount_in, accrued_fee))
    new_reserve_out = checked_sub(reserve_out, amount_out)
    k_after = mul_wide(new_reserve_in, new_reserve_out)

    return SwapExactOutResult(
        amount_in=amount_in,
        amount_out=amount_out,
        fee_total=fee_total,
        accrued_fee=accrued_fee,
        retained_fee=retained_fee,
        net_in=net_in,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=k_before,
        k_after=k_after,
    )


def spot_price(*, reserve_in: int, reserve_out: int, scale: int) -> int:
    """Marginal price of the input asset in output units, scaled by *scale* (floor)."""
    _require_reserves(reserve_in, reserve_out)
    return mul_div(reserve_out, scale, reserve_in)


def price_impact_bps(*, reserve_in: int, reserve_out: int, amount_in: int, amount_out: int) -> int:
    """
    Shortfall of the executed rate versus the spot rate, in basis points (ceil).

    ``1 - (amount_out / amount_in) / (reserve_out / reserve_in)``
    """
    _require_reserves(reserve_in, reserve_out)
    require_uint("amount_in", amount_in)
    require_uint("amount_out", amount_out)
    if amount_in <= 0:
        raise ValueError("amount_in must be positive")
    ideal = mul_wide(amount_in, reserve_out)
    executed = mul_wide(amount_out, reserve_in)
    if executed >= ideal:
        return 0
    # Both terms are intermediate-width values, so this stays out of mul_div.
    shortfall = ideal - executed
    return (shortfall * BPS_DENOM + ideal - 1) // ideal
