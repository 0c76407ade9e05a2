# [TESTER] v1

from __future__ import annotations

import pytest

from pairpool.core.errors import ArithmeticOverflow, DivisionByZero
from pairpool.core.fixed_point import (
    UINT256_MAX,
    apply_bps,
    checked_add,
    checked_sub,
    div_up,
    isqrt_floor,
    mul_div,
    mul_div_up,
    mul_wide,
    require_bps,
    require_uint,
)


def test_require_uint_bounds() -> None:
    assert require_uint("x", 0) == 0
    assert require_uint("x", UINT256_MAX) == UINT256_MAX
    with pytest.raises(ArithmeticOverflow):
        require_uint("x", -1)
    with pytest.raises(ArithmeticOverflow):
        require_uint("x", UINT256_MAX + 1)
    with pytest.raises(TypeError):
        require_uint("x", True)
    with pytest.raises(TypeError):
        require_uint("x", 1.0)  # type: ignore[arg-type]


def test_checked_add_sub() -> None:
    assert checked_add(2, 3) == 5
    assert checked_sub(5, 3) == 2
    with pytest.raises(ArithmeticOverflow):
        checked_add(UINT256_MAX, 1)
    with pytest.raises(ArithmeticOverflow):
        checked_sub(3, 5)


def test_mul_div_uses_wide_intermediate() -> None:
    # The product overflows 256 bits but the quotient does not.
    assert mul_div(UINT256_MAX, UINT256_MAX, UINT256_MAX) == UINT256_MAX
    assert mul_wide(UINT256_MAX, 2) == UINT256_MAX * 2


def test_mul_div_rounding_direction() -> None:
    assert mul_div(7, 1, 2) == 3
    assert mul_div_up(7, 1, 2) == 4
    assert mul_div_up(8, 1, 2) == 4
    assert div_up(0, 5) == 0


def test_mul_div_failures() -> None:
    with pytest.raises(DivisionByZero):
        mul_div(1, 1, 0)
    with pytest.raises(DivisionByZero):
        mul_div_up(1, 1, 0)
    with pytest.raises(ArithmeticOverflow):
        mul_div(UINT256_MAX, UINT256_MAX, 1)


def test_isqrt_floor_is_exact_for_large_values() -> None:
    # Pick a value where float sqrt would be wrong due to precision loss.
    n = (1 << 70) + 12345
    assert isqrt_floor(n * n) == n
    assert isqrt_floor(n * n - 1) == n - 1
    with pytest.raises(ArithmeticOverflow):
        isqrt_floor(-1)


def test_bps_helpers() -> None:
    assert apply_bps(1001, 5000) == 500
    assert require_bps("fee", 10_000) == 10_000
    with pytest.raises(ValueError):
        require_bps("fee", 10_001)
    with pytest.raises(ValueError):
        apply_bps(1, -1)
