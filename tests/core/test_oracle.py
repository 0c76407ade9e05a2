# [TESTER] v1

from __future__ import annotations

import pytest

from pairpool.core.config import PoolConfig
from pairpool.core.controller import PoolController
from pairpool.core.errors import ReentrancyDetected, StaleOracleData, TransferFailed
from pairpool.core.oracle import (
    OracleObservation,
    OracleState,
    OracleValuationAdapter,
    StaticPriceOracle,
    deviation_exceeded,
    is_fresh,
)
from pairpool.core.pricing import PRICE_SCALE
from pairpool.core.transfer import InMemoryAssetTransfer
from pairpool.state.balances import Asset


def test_is_fresh_window() -> None:
    state = OracleState(price_timestamp=100, max_staleness_seconds=50)
    assert is_fresh(state, 100)
    assert is_fresh(state, 150)
    assert not is_fresh(state, 151)
    # A reading stamped in the future is never fresh.
    assert not is_fresh(state, 99)


def test_oracle_state_validation() -> None:
    with pytest.raises(ValueError):
        OracleState(price_timestamp=-1, max_staleness_seconds=10)
    with pytest.raises(ValueError):
        OracleState(price_timestamp=0, max_staleness_seconds=0)


def test_deviation_exceeded_is_symmetric_in_direction() -> None:
    ref = PRICE_SCALE
    assert not deviation_exceeded(ref * 105 // 100, ref, 500)
    assert deviation_exceeded(ref * 106 // 100, ref, 500)
    assert deviation_exceeded(ref * 94 // 100, ref, 500)


def test_twap_weights_by_time() -> None:
    oracle = StaticPriceOracle(PRICE_SCALE, 0)
    adapter = OracleValuationAdapter(oracle)
    adapter.observe(0)
    oracle.update(2 * PRICE_SCALE, 100)
    adapter.observe(100)
    assert adapter.twap(200) == 3 * PRICE_SCALE // 2


def test_twap_ignores_readings_before_window() -> None:
    oracle = StaticPriceOracle(PRICE_SCALE, 0)
    adapter = OracleValuationAdapter(oracle, max_staleness_seconds=1000, twap_window_seconds=100)
    adapter.observe(0)
    oracle.update(3 * PRICE_SCALE, 500)
    adapter.observe(500)
    # The window [500, 600] only sees the second reading.
    assert adapter.twap(600) == 3 * PRICE_SCALE
    # Re-observing at the window edge drops the reading that no longer prices it.
    adapter.observe(600)
    assert len(adapter.history) == 1


def test_observe_rejects_stale_future_and_zero() -> None:
    oracle = StaticPriceOracle(PRICE_SCALE, 0)
    adapter = OracleValuationAdapter(oracle, max_staleness_seconds=300)
    with pytest.raises(StaleOracleData):
        adapter.observe(301)
    oracle.update(PRICE_SCALE, 500)
    with pytest.raises(StaleOracleData):
        adapter.observe(400)
    oracle.update(0, 400)
    with pytest.raises(StaleOracleData):
        adapter.observe(400)


def test_observe_rejects_backwards_time_and_replaces_same_timestamp() -> None:
    oracle = StaticPriceOracle(PRICE_SCALE, 100)
    adapter = OracleValuationAdapter(oracle)
    adapter.observe(100)
    oracle.update(2 * PRICE_SCALE, 100)
    adapter.observe(100)
    assert [o.price_e18 for o in adapter.history] == [2 * PRICE_SCALE]
    oracle.update(PRICE_SCALE, 50)
    with pytest.raises(StaleOracleData):
        adapter.observe(100)


def test_twap_without_observations() -> None:
    adapter = OracleValuationAdapter(StaticPriceOracle())
    with pytest.raises(StaleOracleData):
        adapter.twap(0)


# ---------------------------------------------------------------------------
# Oracle-mode deposits through the controller
# ---------------------------------------------------------------------------


def _oracle_pool(price_e18: int, timestamp: int, now: int):
    oracle = StaticPriceOracle(price_e18, timestamp)
    transfer = InMemoryAssetTransfer()
    for pk in ("alice", "bob"):
        transfer.fund(pk, Asset.A, 10**9)
        transfer.fund(pk, Asset.B, 10**9)
    controller = PoolController(
        transfer,
        PoolConfig(oracle_mode=True),
        oracle=oracle,
        clock=lambda: now,
    )
    return controller, transfer, oracle


class TestOracleModeDeposit:
    def test_seed_deposit_ignores_oracle(self):
        c, _, _ = _oracle_pool(PRICE_SCALE, 0, 10_000)
        r = c.deposit("alice", 1000, 1000)
        assert r.shares_minted == 1000

    def test_deposit_valued_at_oracle_price(self):
        c, t, _ = _oracle_pool(PRICE_SCALE, 1000, 1000)
        c.deposit("alice", 1000, 1000)
        r = c.deposit("bob", 100, 300)
        # value = 100 + 300 = 400 against a pool worth 2000 -> 1000 * 400 / 2000
        assert r.shares_minted == 200
        assert (r.amount_a, r.amount_b) == (100, 300)
        assert c.reserves() == (1100, 1300)
        assert c.check_invariants() == []

    def test_stale_oracle_rejects_deposit(self):
        c, t, _ = _oracle_pool(PRICE_SCALE, 0, 1000)
        c.deposit("alice", 1000, 1000)
        with pytest.raises(StaleOracleData):
            c.deposit("bob", 100, 100)
        assert c.total_shares() == 1000
        assert t.wallets.get("bob", Asset.A) == 10**9

    def test_off_market_oracle_rejects_deposit(self):
        c, _, _ = _oracle_pool(2 * PRICE_SCALE, 1000, 1000)
        c.deposit("alice", 1000, 1000)
        with pytest.raises(StaleOracleData):
            c.deposit("bob", 100, 100)

    def test_oracle_mode_can_be_switched_off(self):
        c, _, _ = _oracle_pool(PRICE_SCALE, 0, 1000)
        c.deposit("alice", 1000, 1000)
        c.set_config(PoolConfig(oracle_mode=False))
        r = c.deposit("bob", 100, 300)
        assert (r.amount_a, r.amount_b) == (100, 100)


class TestOracleRollback:
    def test_failed_deposit_discards_its_oracle_reading(self):
        c, _, oracle = _oracle_pool(PRICE_SCALE, 1000, 1100)
        c.deposit("alice", 1000, 1000)
        oracle.update(1_040_000_000_000_000_000, 1100)
        history_before = c.oracle_adapter.history
        state_before = c.oracle_adapter.state
        # mallory holds nothing, so the transfer leg fails after valuation ran.
        with pytest.raises(TransferFailed):
            c.deposit("mallory", 100, 100)
        assert c.oracle_adapter.history == history_before
        assert c.oracle_adapter.state == state_before
        assert OracleObservation(1_040_000_000_000_000_000, 1100) not in c.oracle_adapter.history

    def test_successful_deposit_keeps_its_oracle_reading(self):
        c, _, oracle = _oracle_pool(PRICE_SCALE, 1000, 1100)
        c.deposit("alice", 1000, 1000)
        oracle.update(1_040_000_000_000_000_000, 1100)
        c.deposit("bob", 100, 100)
        assert c.oracle_adapter.history[-1] == OracleObservation(1_040_000_000_000_000_000, 1100)

    def test_adapter_checkpoint_and_rollback(self):
        adapter = OracleValuationAdapter(StaticPriceOracle(PRICE_SCALE, 10))
        adapter.observe(10)
        saved = adapter.checkpoint()
        adapter.oracle.update(2 * PRICE_SCALE, 20)
        adapter.observe(20)
        assert len(adapter.history) == 2
        adapter.rollback(saved)
        assert adapter.history == (OracleObservation(PRICE_SCALE, 10),)
        assert adapter.state.price_timestamp == 10


# ---------------------------------------------------------------------------


class _Clock:
    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


class TestKeeperObserve:
    def test_observe_requires_an_oracle(self):
        c = PoolController(InMemoryAssetTransfer())
        with pytest.raises(ValueError):
            c.observe_oracle()

    def test_keeper_readings_feed_the_twap(self):
        oracle = StaticPriceOracle(PRICE_SCALE, 1000)
        clock = _Clock(1000)
        c = PoolController(InMemoryAssetTransfer(), oracle=oracle, clock=clock)
        c.observe_oracle()
        clock.now = 1100
        oracle.update(PRICE_SCALE * 102 // 100, 1100)
        obs = c.observe_oracle()
        assert obs == OracleObservation(PRICE_SCALE * 102 // 100, 1100)
        assert len(c.oracle_adapter.history) == 2
        clock.now = 1200
        # 100s at 1.00 and 100s at 1.02
        assert c.oracle_adapter.twap(1200) == PRICE_SCALE * 101 // 100

    def test_keeper_samples_are_used_by_later_deposits(self):
        oracle = StaticPriceOracle(PRICE_SCALE, 1000)
        clock = _Clock(1000)
        transfer = InMemoryAssetTransfer()
        for pk in ("alice", "bob"):
            transfer.fund(pk, Asset.A, 10**9)
            transfer.fund(pk, Asset.B, 10**9)
        c = PoolController(transfer, PoolConfig(oracle_mode=True), oracle=oracle, clock=clock)
        c.deposit("alice", 1000, 1000)
        c.observe_oracle()
        clock.now = 1100
        oracle.update(PRICE_SCALE * 104 // 100, 1100)
        c.observe_oracle()
        clock.now = 1200
        r = c.deposit("bob", 100, 1000)
        # TWAP 1.02 over the keeper samples; the 1.04 spot alone would mint 558
        # value = 100 + 1020 = 1120 against 1000 + 1020 -> 1000 * 1120 // 2020
        assert r.shares_minted == 554
        assert c.oracle_adapter.history[0] == OracleObservation(PRICE_SCALE, 1000)

    def test_stale_keeper_reading_is_rejected(self):
        oracle = StaticPriceOracle(PRICE_SCALE, 0)
        c = PoolController(InMemoryAssetTransfer(), oracle=oracle, clock=lambda: 1000)
        with pytest.raises(StaleOracleData):
            c.observe_oracle()
        assert c.oracle_adapter.history == ()
        assert not c.locked

    def test_observe_is_guarded_against_reentry(self):
        oracle = StaticPriceOracle(PRICE_SCALE, 1000)
        c = PoolController(InMemoryAssetTransfer(), oracle=oracle, clock=lambda: 1000)
        c._acquire_lock()
        try:
            with pytest.raises(ReentrancyDetected):
                c.observe_oracle()
        finally:
            c._release_lock()
