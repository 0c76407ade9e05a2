"""Overflow-checked integer arithmetic for the pool ledgers.

Every function is stateless and operates on plain Python ints. Python ints
never overflow, so the fixed widths are enforced explicitly: operands and
results are unsigned 256-bit values and products may use up to 512 bits
before the division.

Rounding is explicit: ``mul_div`` floors, ``mul_div_up`` ceils. Callers pick
the direction that keeps the rounding error on the pool's side.
"""

from __future__ import annotations

import math

from .errors import ArithmeticOverflow, DivisionByZero

NATIVE_BITS: int = 256
WIDE_BITS: int = 512
UINT256_MAX: int = (1 << NATIVE_BITS) - 1
UINT512_MAX: int = (1 << WIDE_BITS) - 1

BPS_DENOM: int = 10_000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def require_uint(name: str, value: int) -> int:
    """Return *value* if it is an int in ``[0, UINT256_MAX]``."""
    _require_int(name, value)
    if value < 0:
        raise ArithmeticOverflow(f"{name} underflows unsigned range: {value}")
    if value > UINT256_MAX:
        raise ArithmeticOverflow(f"{name} exceeds {NATIVE_BITS}-bit range")
    return value


# -- Add / sub ---------------------------------------------------------------

def checked_add(a: int, b: int) -> int:
    """``a + b``, failing if the sum leaves the native width."""
    require_uint("a", a)
    require_uint("b", b)
    total = a + b
    if total > UINT256_MAX:
        raise ArithmeticOverflow(f"addition overflow: {a} + {b}")
    return total


def checked_sub(a: int, b: int) -> int:
    """``a - b``, failing if the difference would be negative."""
    require_uint("a", a)
    require_uint("b", b)
    if b > a:
        raise ArithmeticOverflow(f"subtraction underflow: {a} - {b}")
    return a - b


# -- Multiply / divide -------------------------------------------------------

def mul_wide(a: int, b: int) -> int:
    """Full-width product ``a * b`` (fits in the intermediate width by construction)."""
    require_uint("a", a)
    require_uint("b", b)
    product = a * b
    if product > UINT512_MAX:
        raise ArithmeticOverflow("product exceeds intermediate width")
    return product


def _checked_product(a: int, b: int, denominator: int) -> int:
    require_uint("a", a)
    require_uint("b", b)
    require_uint("denominator", denominator)
    if denominator == 0:
        raise DivisionByZero("mul_div denominator is zero")
    product = a * b
    if product > UINT512_MAX:
        raise ArithmeticOverflow("product exceeds intermediate width")
    return product


def mul_div(a: int, b: int, denominator: int) -> int:
    """``floor(a * b / denominator)`` with a 512-bit intermediate."""
    quotient = _checked_product(a, b, denominator) // denominator
    if quotient > UINT256_MAX:
        raise ArithmeticOverflow("mul_div result exceeds native width")
    return quotient


def mul_div_up(a: int, b: int, denominator: int) -> int:
    """``ceil(a * b / denominator)`` with a 512-bit intermediate."""
    product = _checked_product(a, b, denominator)
    quotient = (product + denominator - 1) // denominator
    if quotient > UINT256_MAX:
        raise ArithmeticOverflow("mul_div_up result exceeds native width")
    return quotient


def div_up(numerator: int, denominator: int) -> int:
    """``ceil(numerator / denominator)``."""
    return mul_div_up(numerator, 1, denominator)


def isqrt_floor(value: int) -> int:
    """``floor(sqrt(value))`` for an intermediate-width value."""
    _require_int("value", value)
    if value < 0:
        raise ArithmeticOverflow(f"isqrt of negative value: {value}")
    if value > UINT512_MAX:
        raise ArithmeticOverflow("isqrt operand exceeds intermediate width")
    return math.isqrt(value)


# -- Basis points ------------------------------------------------------------

def require_bps(name: str, value: int) -> int:
    """Return *value* if it is a basis-point value in ``[0, 10_000]``."""
    _require_int(name, value)
    if not (0 <= value <= BPS_DENOM):
        raise ValueError(f"{name} must be in [0, {BPS_DENOM}]: {value}")
    return value


def apply_bps(amount: int, bps: int) -> int:
    """``floor(amount * bps / 10_000)``."""
    require_bps("bps", bps)
    return mul_div(amount, bps, BPS_DENOM)
