"""
Oracle-priced deposit valuation (opt-in).

The adapter reads an external spot price, keeps a short history of fresh
readings and values deposits at the time-weighted average of that history:

- a reading older than ``max_staleness_seconds`` (or stamped in the future)
  is rejected with ``StaleOracleData``,
- the TWAP covers the trailing ``twap_window_seconds``,
- a TWAP further than ``max_deviation_bps`` from the pool's own spot price is
  rejected as well, which bounds what a manipulated feed can mint.

The history is only extended when someone calls ``observe``. Deposits do so
on entry, so without an external keeper the TWAP is sampled at depositor
arrival times rather than at the feed's own update cadence; a keeper calling
``PoolController.observe_oracle`` on every feed update removes that bias.

Prices are amounts of asset A per one unit of asset B, scaled by ``PRICE_SCALE``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Protocol, Tuple

from ..state.balances import Amount
from .errors import StaleOracleData, ZeroLiquidityOut
from .fixed_point import BPS_DENOM, checked_add, mul_div, require_uint
from .pricing import PRICE_SCALE


class PriceOracle(Protocol):
    def latest_price(self) -> Tuple[int, int]:
        """Return ``(price_e18, timestamp)``."""
        ...


class StaticPriceOracle:
    """Settable in-memory oracle."""

    def __init__(self, price_e18: int = PRICE_SCALE, timestamp: int = 0) -> None:
        self.price_e18 = price_e18
        self.timestamp = timestamp

    def update(self, price_e18: int, timestamp: int) -> None:
        self.price_e18 = price_e18
        self.timestamp = timestamp

    def latest_price(self) -> Tuple[int, int]:
        return self.price_e18, self.timestamp


@dataclass(frozen=True)
class OracleState:
    """Minimal oracle freshness state."""

    price_timestamp: int
    max_staleness_seconds: int

    def __post_init__(self) -> None:
        if self.price_timestamp < 0:
            raise ValueError(f"price_timestamp must be non-negative: {self.price_timestamp}")
        if self.max_staleness_seconds <= 0:
            raise ValueError(
                f"max_staleness_seconds must be positive: {self.max_staleness_seconds}"
            )


def is_fresh(state: OracleState, current_timestamp: int) -> bool:
    """Return True if the oracle price timestamp is within the max staleness window."""
    if current_timestamp < 0:
        raise ValueError(f"current_timestamp must be non-negative: {current_timestamp}")
    if state.price_timestamp > current_timestamp:
        return False
    return (current_timestamp - state.price_timestamp) <= state.max_staleness_seconds


def deviation_exceeded(price_e18: int, reference_e18: int, max_deviation_bps: int) -> bool:
    """``|price - reference| * 10000 > max_deviation_bps * reference`` (no division)."""
    diff = price_e18 - reference_e18 if price_e18 >= reference_e18 else reference_e18 - price_e18
    return diff * BPS_DENOM > max_deviation_bps * reference_e18


@dataclass(frozen=True)
class OracleObservation:
    price_e18: int
    timestamp: int


class OracleValuationAdapter:
    """Converts oracle readings into deposit valuations for a non-empty pool."""

    def __init__(
        self,
        oracle: PriceOracle,
        *,
        max_staleness_seconds: int = 300,
        twap_window_seconds: int = 1800,
        max_deviation_bps: int = 500,
        max_observations: int = 64,
    ) -> None:
        if twap_window_seconds <= 0:
            raise ValueError(f"twap_window_seconds must be positive: {twap_window_seconds}")
        if max_observations <= 0:
            raise ValueError(f"max_observations must be positive: {max_observations}")
        self.oracle = oracle
        self.state = OracleState(price_timestamp=0, max_staleness_seconds=max_staleness_seconds)
        self.twap_window_seconds = twap_window_seconds
        self.max_deviation_bps = max_deviation_bps
        self.max_observations = max_observations
        self._history: List[OracleObservation] = []

    def reconfigure(
        self,
        *,
        max_staleness_seconds: int,
        twap_window_seconds: int,
        max_deviation_bps: int,
    ) -> None:
        """Apply new guard parameters; recorded observations are kept."""
        if twap_window_seconds <= 0:
            raise ValueError(f"twap_window_seconds must be positive: {twap_window_seconds}")
        self.state = replace(self.state, max_staleness_seconds=max_staleness_seconds)
        self.twap_window_seconds = twap_window_seconds
        self.max_deviation_bps = max_deviation_bps

    @property
    def history(self) -> Tuple[OracleObservation, ...]:
        return tuple(self._history)

    def checkpoint(self) -> Tuple[OracleState, Tuple[OracleObservation, ...]]:
        return self.state, tuple(self._history)

    def rollback(self, saved: Tuple[OracleState, Tuple[OracleObservation, ...]]) -> None:
        """Discard readings recorded since ``checkpoint()``."""
        state, history = saved
        self.state = state
        self._history = list(history)

    def observe(self, now: int) -> OracleObservation:
        """Read the oracle, reject stale data, and record the reading."""
        price_e18, timestamp = self.oracle.latest_price()
        require_uint("price_e18", price_e18)
        require_uint("timestamp", timestamp)
        if price_e18 == 0:
            raise StaleOracleData("oracle reported a zero price")
        candidate = replace(self.state, price_timestamp=timestamp)
        if not is_fresh(candidate, now):
            raise StaleOracleData(
                f"oracle reading at {timestamp} is stale or from the future (now={now}, "
                f"max_staleness={self.state.max_staleness_seconds}s)"
            )

        obs = OracleObservation(price_e18=price_e18, timestamp=timestamp)
        if self._history and self._history[-1].timestamp > timestamp:
            raise StaleOracleData("oracle timestamp moved backwards")
        if self._history and self._history[-1].timestamp == timestamp:
            self._history[-1] = obs
        else:
            self._history.append(obs)
        self.state = candidate
        self._trim(now)
        return obs

    def twap(self, now: int) -> int:
        """Time-weighted average price over the trailing window ending at *now*."""
        if not self._history:
            raise StaleOracleData("no oracle observations recorded")
        window_start = max(0, now - self.twap_window_seconds)

        weighted = 0
        elapsed = 0
        for i, obs in enumerate(self._history):
            seg_end = self._history[i + 1].timestamp if i + 1 < len(self._history) else now
            seg_start = max(obs.timestamp, window_start)
            if seg_end <= seg_start:
                continue
            dt = seg_end - seg_start
            weighted += obs.price_e18 * dt
            elapsed += dt

        if elapsed == 0:
            return self._history[-1].price_e18
        return weighted // elapsed

    def valuation_ratio(self, now: int, reserve_a: Amount, reserve_b: Amount) -> int:
        """
        Fresh TWAP price (A per B, scaled), checked against the pool spot price.

        Raises:
            StaleOracleData: If the reading is stale or the TWAP is off-market
        """
        self.observe(now)
        price = self.twap(now)
        if reserve_a > 0 and reserve_b > 0:
            spot = mul_div(reserve_a, PRICE_SCALE, reserve_b)
            if deviation_exceeded(price, spot, self.max_deviation_bps):
                raise StaleOracleData(
                    f"oracle TWAP {price} deviates from pool spot {spot} by more than "
                    f"{self.max_deviation_bps} bps"
                )
        return price

    def size_deposit(
        self,
        *,
        now: int,
        amount_a: Amount,
        amount_b: Amount,
        reserve_a: Amount,
        reserve_b: Amount,
        total_shares: Amount,
    ) -> Amount:
        """
        Shares for a deposit valued at the oracle price:

            shares = floor(value(deposit) * total_shares / value(pool))

        with both values expressed in asset-A units.
        """
        price = self.valuation_ratio(now, reserve_a, reserve_b)
        deposit_value = checked_add(amount_a, mul_div(amount_b, price, PRICE_SCALE))
        pool_value = checked_add(reserve_a, mul_div(reserve_b, price, PRICE_SCALE))
        if pool_value == 0:
            raise ZeroLiquidityOut("pool has no value at the oracle price")
        shares = mul_div(deposit_value, total_shares, pool_value)
        if shares == 0:
            raise ZeroLiquidityOut("deposit mints zero shares at the oracle price")
        return shares

    def _trim(self, now: int) -> None:
        window_start = now - self.twap_window_seconds
        # Keep the last observation at or before the window start; it prices the window's head.
        while len(self._history) > 1 and self._history[1].timestamp <= window_start:
            self._history.pop(0)
        if len(self._history) > self.max_observations:
            del self._history[: len(self._history) - self.max_observations]

    def __repr__(self) -> str:
        last: Optional[OracleObservation] = self._history[-1] if self._history else None
        return f"OracleValuationAdapter(observations={len(self._history)}, last={last})"
