"""
Liquidity share math kernel.

Pure functions with explicit rounding rules:
- seed deposits mint ``floor(sqrt(amount_a * amount_b))`` shares,
- later deposits are trimmed to the current reserve ratio and mint the smaller
  of the two proportional share counts (floor),
- burns pay ``floor(shares * reserve / total_shares)`` of each asset.

Every rounding step favours the pool, so no sequence of mints and burns can
extract more than was deposited.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...core.errors import (
    DegenerateInitialDeposit,
    InsufficientLiquidity,
    InsufficientShares,
    ZeroLiquidityOut,
)
from ...core.fixed_point import isqrt_floor, mul_div, mul_wide, require_uint


@dataclass(frozen=True)
class OptimalLiquidityResult:
    amount_a_used: int
    amount_b_used: int
    amount_a_refund: int
    amount_b_refund: int


@dataclass(frozen=True)
class MintSharesResult:
    shares_minted: int
    amount_a_used: int
    amount_b_used: int
    amount_a_refund: int
    amount_b_refund: int
    seeded: bool


@dataclass(frozen=True)
class BurnSharesResult:
    amount_a_out: int
    amount_b_out: int


def optimal_liquidity(
    *,
    reserve_a: int,
    reserve_b: int,
    amount_a_desired: int,
    amount_b_desired: int,
) -> OptimalLiquidityResult:
    """
    Compute ratio-preserving used amounts and refunds.

    For an empty pool (either reserve zero), uses everything and refunds nothing.
    """
    for name, v in (
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("amount_a_desired", amount_a_desired),
        ("amount_b_desired", amount_b_desired),
    ):
        require_uint(name, v)

    if amount_a_desired <= 0 or amount_b_desired <= 0:
        raise ValueError("desired amounts must be positive")

    if reserve_a == 0 or reserve_b == 0:
        return OptimalLiquidityResult(
            amount_a_used=amount_a_desired,
            amount_b_used=amount_b_desired,
            amount_a_refund=0,
            amount_b_refund=0,
        )

    amount_b_from_a = mul_div(amount_a_desired, reserve_b, reserve_a)
    if amount_b_from_a <= amount_b_desired:
        amount_a_used = amount_a_desired
        amount_b_used = amount_b_from_a
    else:
        amount_a_used = mul_div(amount_b_desired, reserve_a, reserve_b)
        amount_b_used = amount_b_desired

    if amount_a_used <= 0 or amount_b_used <= 0:
        raise ZeroLiquidityOut("deposit too small for the current reserve ratio")
    if amount_a_used > amount_a_desired or amount_b_used > amount_b_desired:
        raise AssertionError("used amounts exceed desired amounts")

    return OptimalLiquidityResult(
        amount_a_used=amount_a_used,
        amount_b_used=amount_b_used,
        amount_a_refund=amount_a_desired - amount_a_used,
        amount_b_refund=amount_b_desired - amount_b_used,
    )


def seed_shares(*, amount_a: int, amount_b: int) -> int:
    """Shares minted by the deposit that defines the pool's initial price."""
    require_uint("amount_a", amount_a)
    require_uint("amount_b", amount_b)
    if amount_a == 0 or amount_b == 0:
        raise DegenerateInitialDeposit(
            f"initial deposit must fund both assets: ({amount_a}, {amount_b})"
        )
    shares = isqrt_floor(mul_wide(amount_a, amount_b))
    if shares <= 0:
        raise DegenerateInitialDeposit("initial deposit mints zero shares")
    return shares


def mint_shares(
    *,
    reserve_a: int,
    reserve_b: int,
    total_shares: int,
    amount_a_desired: int,
    amount_b_desired: int,
) -> MintSharesResult:
    """
    Shares for a deposit sized by the current reserve ratio.

    ``total_shares == 0`` seeds the pool (reserves must be empty as well).
    """
    for name, v in (
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("total_shares", total_shares),
        ("amount_a_desired", amount_a_desired),
        ("amount_b_desired", amount_b_desired),
    ):
        require_uint(name, v)

    if total_shares == 0:
        if reserve_a != 0 or reserve_b != 0:
            raise ValueError("cannot seed a pool whose reserves are non-zero")
        minted = seed_shares(amount_a=amount_a_desired, amount_b=amount_b_desired)
        return MintSharesResult(
            shares_minted=minted,
            amount_a_used=amount_a_desired,
            amount_b_used=amount_b_desired,
            amount_a_refund=0,
            amount_b_refund=0,
            seeded=True,
        )

    if reserve_a == 0 or reserve_b == 0:
        raise InsufficientLiquidity("outstanding shares over an empty reserve")
    if amount_a_desired <= 0 or amount_b_desired <= 0:
        raise ValueError(f"deposit amounts must be positive: ({amount_a_desired}, {amount_b_desired})")

    opt = optimal_liquidity(
        reserve_a=reserve_a,
        reserve_b=reserve_b,
        amount_a_desired=amount_a_desired,
        amount_b_desired=amount_b_desired,
    )

    shares_a = mul_div(opt.amount_a_used, total_shares, reserve_a)
    shares_b = mul_div(opt.amount_b_used, total_shares, reserve_b)
    minted = min(shares_a, shares_b)
    if minted <= 0:
        raise ZeroLiquidityOut("deposit mints zero shares")

    return MintSharesResult(
        shares_minted=minted,
        amount_a_used=opt.amount_a_used,
        amount_b_used=opt.amount_b_used,
        amount_a_refund=opt.amount_a_refund,
        amount_b_refund=opt.amount_b_refund,
        seeded=False,
    )


def burn_shares(*, shares: int, reserve_a: int, reserve_b: int, total_shares: int) -> BurnSharesResult:
    """
    Burn shares for the underlying assets (floor rounding).
    """
    for name, v in (
        ("shares", shares),
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("total_shares", total_shares),
    ):
        require_uint(name, v)

    if shares <= 0:
        raise ValueError("shares must be positive")
    if shares > total_shares:
        raise InsufficientShares(f"cannot burn more than total_shares: {shares} > {total_shares}")

    amount_a_out = mul_div(shares, reserve_a, total_shares)
    amount_b_out = mul_div(shares, reserve_b, total_shares)
    if amount_a_out == 0 or amount_b_out == 0:
        raise ZeroLiquidityOut(f"burn of {shares} shares rounds an output to zero")
    return BurnSharesResult(amount_a_out=amount_a_out, amount_b_out=amount_b_out)
