# [TESTER] v1

from __future__ import annotations

import pytest

from pairpool.core.errors import InsufficientLiquidity
from pairpool.core.pricing import (
    PRICE_SCALE,
    min_amount_out,
    quote_in,
    quote_out,
    spot_price_e18,
)


def test_quote_out_small_pool() -> None:
    q = quote_out(1000, 1000, 100, 30)
    assert q.net_in == 99
    assert q.amount_out == 90
    assert q.fee_amount == 1
    assert (q.new_reserve_in, q.new_reserve_out) == (1100, 910)
    assert q.k_after >= q.k_before
    assert q.price_impact_bps == 1000


def test_quote_out_fee_split() -> None:
    q = quote_out(1_000_000, 1_000_000, 10_000, 30, 5_000)
    assert q.fee_amount == 30
    assert q.accrued_fee == 15
    assert q.retained_fee == 15
    assert q.new_reserve_in == 1_000_000 + 10_000 - 15


def test_quote_out_zero_fee_is_pure_constant_product() -> None:
    q = quote_out(1000, 4000, 1000, 0)
    assert q.amount_out == 2000
    assert q.fee_amount == 0


def test_quote_in_is_minimal() -> None:
    q = quote_in(1000, 1000, 90, 30)
    assert q.amount_in == 100
    assert q.amount_out >= 90
    # One unit less no longer delivers the requested output.
    assert quote_out(1000, 1000, 99, 30).amount_out < 90


def test_quote_rejects_empty_pool() -> None:
    with pytest.raises(InsufficientLiquidity):
        quote_out(0, 1000, 100, 30)
    with pytest.raises(InsufficientLiquidity):
        quote_in(1000, 1000, 1000, 30)


def test_min_amount_out() -> None:
    assert min_amount_out(90, 100) == 89
    assert min_amount_out(90, 0) == 90
    assert min_amount_out(90, 10_000) == 0
    with pytest.raises(ValueError):
        min_amount_out(90, 10_001)


def test_spot_price() -> None:
    assert spot_price_e18(1000, 2000) == 2 * PRICE_SCALE
    assert spot_price_e18(3, 1) == PRICE_SCALE // 3
