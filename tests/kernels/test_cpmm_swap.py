from __future__ import annotations

import importlib.util

import pytest

from pairpool.core.errors import InsufficientLiquidity
from pairpool.kernels.python.cpmm_swap import (
    amount_out_direct,
    amount_out_product,
    compute_fee_total,
    compute_net_in,
    price_impact_bps,
    split_fee,
    swap_exact_in,
    swap_exact_out,
)

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import given, settings


def test_fee_is_charged_on_gross_input() -> None:
    assert compute_net_in(gross_in=100, fee_bps=30) == 99
    assert compute_fee_total(gross_in=100, fee_bps=30) == 1
    assert compute_fee_total(gross_in=10_000, fee_bps=30) == 30


def test_split_fee_floors_accrued_part() -> None:
    assert split_fee(fee_total=1, claimable_fee_share_bps=5_000) == (0, 1)
    assert split_fee(fee_total=31, claimable_fee_share_bps=5_000) == (15, 16)
    assert split_fee(fee_total=31, claimable_fee_share_bps=10_000) == (31, 0)


def test_swap_exact_in_small_pool() -> None:
    res = swap_exact_in(reserve_in=1000, reserve_out=1000, amount_in=100, fee_bps=30)
    assert res.amount_out == 90
    assert res.new_reserve_in == 1100
    assert res.new_reserve_out == 910
    assert res.k_after > res.k_before


def test_swap_exact_in_with_full_fee_extraction_keeps_k() -> None:
    res = swap_exact_in(
        reserve_in=1_000_000,
        reserve_out=1_000_000,
        amount_in=10_000,
        fee_bps=30,
        claimable_fee_share_bps=10_000,
    )
    assert res.accrued_fee == 30
    assert res.new_reserve_in == 1_009_970
    assert res.k_after >= res.k_before


def test_swap_exact_in_rejects_dust_and_empty_pools() -> None:
    with pytest.raises(InsufficientLiquidity):
        swap_exact_in(reserve_in=1000, reserve_out=1000, amount_in=1, fee_bps=30)
    with pytest.raises(InsufficientLiquidity):
        swap_exact_in(reserve_in=0, reserve_out=1000, amount_in=100, fee_bps=30)
    with pytest.raises(InsufficientLiquidity):
        swap_exact_in(reserve_in=10**6, reserve_out=1, amount_in=10**9, fee_bps=0)
    with pytest.raises(ValueError):
        swap_exact_in(reserve_in=1000, reserve_out=1000, amount_in=0, fee_bps=30)


def test_swap_exact_out_minimal_input() -> None:
    res = swap_exact_out(reserve_in=1000, reserve_out=1000, amount_out=90, fee_bps=30)
    assert res.amount_in == 100
    assert res.amount_out == 90
    with pytest.raises(InsufficientLiquidity):
        swap_exact_out(reserve_in=1000, reserve_out=1000, amount_out=1000, fee_bps=30)


def test_price_impact() -> None:
    assert price_impact_bps(reserve_in=1000, reserve_out=1000, amount_in=100, amount_out=90) == 1000
    assert price_impact_bps(reserve_in=1000, reserve_out=1000, amount_in=100, amount_out=100) == 0


@settings(max_examples=300, deadline=None)
@given(
    reserve_in=st.integers(min_value=1, max_value=2**128),
    reserve_out=st.integers(min_value=1, max_value=2**128),
    net_in=st.integers(min_value=1, max_value=2**128),
)
def test_direct_and_product_forms_agree(reserve_in: int, reserve_out: int, net_in: int) -> None:
    direct = amount_out_direct(reserve_in=reserve_in, reserve_out=reserve_out, net_in=net_in)
    product = amount_out_product(reserve_in=reserve_in, reserve_out=reserve_out, net_in=net_in)
    assert direct == product
    assert direct < reserve_out


@settings(max_examples=300, deadline=None)
@given(
    reserve_in=st.integers(min_value=1_000, max_value=10**24),
    reserve_out=st.integers(min_value=1_000, max_value=10**24),
    amount_in=st.integers(min_value=1, max_value=10**24),
    fee_bps=st.integers(min_value=0, max_value=1_000),
    share_bps=st.integers(min_value=0, max_value=10_000),
)
def test_swap_never_decreases_k(
    reserve_in: int, reserve_out: int, amount_in: int, fee_bps: int, share_bps: int
) -> None:
    try:
        res = swap_exact_in(
            reserve_in=reserve_in,
            reserve_out=reserve_out,
            amount_in=amount_in,
            fee_bps=fee_bps,
            claimable_fee_share_bps=share_bps,
        )
    except InsufficientLiquidity:
        return
    assert res.k_after >= res.k_before
    assert res.accrued_fee + res.retained_fee == res.fee_total
    assert res.net_in + res.fee_total == amount_in
