"""
Pool controller: the four public operations.

The controller wires the ledgers, the pricing kernel, the optional oracle
adapter and the asset-transfer collaborator together:

- every mutating operation runs under a non-reentrant guard,
- the injected ``PoolConfig`` is consulted first (pause, fee rate, oracle mode),
- all ledgers are checkpointed on entry and restored on any failure, so a
  caller observes one pass/fail outcome per operation,
- quantities are computed from state read before any external transfer, and
  the post-state invariants are re-checked after the transfers return.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Mapping, Optional, Tuple

from ..state.balances import Amount, Asset, PubKey, parse_asset
from ..state.pool import PoolRecord, PoolStatus, PositionRecord
from ..state.reserves import ReserveLedger
from ..state.shares import ShareLedger
from .config import PoolConfig
from .errors import (
    DegenerateInitialDeposit,
    Expired,
    InsufficientLiquidity,
    InvariantViolation,
    PoolPaused,
    ReentrancyDetected,
    SlippageExceeded,
    TransferFailed,
)
from .fees import FeeAccrualLedger, FeeCheckpoint
from .fixed_point import require_uint
from .invariants import check_all, k_non_decreasing
from .oracle import OracleObservation, OracleValuationAdapter, PriceOracle
from .pricing import SwapQuote, quote_in, quote_out
from .transfer import AssetTransfer, RollbackableTransfer

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def _wall_clock() -> int:
    return int(time.time())


@dataclass(frozen=True)
class DepositResult:
    participant: PubKey
    amount_a: Amount
    amount_b: Amount
    shares_minted: Amount
    total_shares: Amount


@dataclass(frozen=True)
class WithdrawResult:
    participant: PubKey
    shares_burned: Amount
    amount_a: Amount
    amount_b: Amount
    total_shares: Amount


@dataclass(frozen=True)
class SwapResult:
    participant: PubKey
    asset_in: Asset
    amount_in: Amount
    amount_out: Amount
    fee_amount: Amount
    accrued_fee: Amount
    k_before: int
    k_after: int


@dataclass(frozen=True)
class ClaimResult:
    participant: PubKey
    fee_a: Amount
    fee_b: Amount


def _require_participant(participant: PubKey) -> PubKey:
    if not isinstance(participant, str) or not participant:
        raise ValueError("participant must be a non-empty string")
    return participant


class PoolController:
    """
    Two-asset constant-product pool.

    State machine: ``UNINITIALIZED -> ACTIVE`` on the first successful deposit;
    there is no way back. Swaps, withdrawals and claims require ``ACTIVE``.
    """

    def __init__(
        self,
        transfer: AssetTransfer,
        config: Optional[PoolConfig] = None,
        *,
        oracle: Optional[PriceOracle] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.transfer = transfer
        self.clock: Clock = clock if clock is not None else _wall_clock
        self._oracle = oracle
        self._adapter: Optional[OracleValuationAdapter] = None
        self.config = PoolConfig()
        self.set_config(config if config is not None else PoolConfig())

        self._status = PoolStatus.UNINITIALIZED
        self._reserves = ReserveLedger()
        self._shares = ShareLedger()
        self._fees = FeeAccrualLedger()
        self._locked: bool = False  # reentrancy guard

    # -- Configuration -----------------------------------------------------

    def set_config(self, config: PoolConfig) -> None:
        """Replace the administrative parameters (takes effect on the next operation)."""
        if not isinstance(config, PoolConfig):
            raise TypeError("config must be a PoolConfig")
        if config.oracle_mode and self._oracle is None:
            raise ValueError("oracle_mode requires a price oracle")
        if self._oracle is not None:
            if self._adapter is None:
                self._adapter = OracleValuationAdapter(
                    self._oracle,
                    max_staleness_seconds=config.max_oracle_staleness_seconds,
                    twap_window_seconds=config.twap_window_seconds,
                    max_deviation_bps=config.max_oracle_deviation_bps,
                )
            else:
                self._adapter.reconfigure(
                    max_staleness_seconds=config.max_oracle_staleness_seconds,
                    twap_window_seconds=config.twap_window_seconds,
                    max_deviation_bps=config.max_oracle_deviation_bps,
                )
        self.config = config

    @property
    def oracle_adapter(self) -> Optional[OracleValuationAdapter]:
        return self._adapter

    def observe_oracle(self) -> OracleObservation:
        """
        Record the current oracle reading into the TWAP history (keeper entry point).

        Raises:
            ValueError: If the controller has no price oracle
            StaleOracleData: If the reading is stale, from the future or moves time backwards
        """
        if self._adapter is None:
            raise ValueError("no price oracle configured")
        self._acquire_lock()
        try:
            obs = self._adapter.observe(self.clock())
        finally:
            self._release_lock()
        logger.debug("oracle observed price_e18=%d ts=%d", obs.price_e18, obs.timestamp)
        return obs

    # -- Reentrancy guard --------------------------------------------------

    def _acquire_lock(self) -> None:
        if self._locked:
            raise ReentrancyDetected("pool operation already in progress")
        self._locked = True

    def _release_lock(self) -> None:
        self._locked = False

    @contextmanager
    def _operation(self, name: str, deadline: Optional[int]) -> Iterator[None]:
        self._acquire_lock()
        try:
            if self.config.paused:
                raise PoolPaused(f"{name} rejected: pool is paused")
            if deadline is not None:
                now = self.clock()
                if now > deadline:
                    raise Expired(f"{name} deadline {deadline} passed (now={now})")

            saved = (self._status, self._reserves.clone(), self._shares.clone(), self._fees.clone())
            transfer_saved = (
                self.transfer.checkpoint() if isinstance(self.transfer, RollbackableTransfer) else None
            )
            adapter = self._adapter
            adapter_saved = adapter.checkpoint() if adapter is not None else None
            try:
                yield
            except Exception as exc:
                self._status, self._reserves, self._shares, self._fees = saved
                if transfer_saved is not None:
                    self.transfer.rollback(transfer_saved)
                if adapter is not None and adapter_saved is not None:
                    adapter.rollback(adapter_saved)
                logger.debug("%s rolled back: %s: %s", name, type(exc).__name__, exc)
                raise
        finally:
            self._release_lock()

    # -- Reads -------------------------------------------------------------

    @property
    def status(self) -> PoolStatus:
        return self._status

    @property
    def locked(self) -> bool:
        return self._locked

    def reserves(self) -> Tuple[Amount, Amount]:
        return self._reserves.reserves()

    def total_shares(self) -> Amount:
        return self._shares.total_shares

    def shares_of(self, participant: PubKey) -> Amount:
        return self._shares.balance_of(participant)

    def claimable(self, participant: PubKey) -> Tuple[Amount, Amount]:
        """Fees ``(a, b)`` that ``claim_fees`` would pay right now."""
        return self._fees.pending(participant, self._shares.balance_of(participant))

    def quote(self, amount_in: Amount, asset_in: object) -> SwapQuote:
        """Price an exact-in swap against the current reserves without executing it."""
        reserve_in, reserve_out = self._reserves.oriented(parse_asset(asset_in))
        return quote_out(
            reserve_in, reserve_out, amount_in, self.config.fee_bps, self.config.claimable_fee_share_bps
        )

    def quote_exact_out(self, amount_out: Amount, asset_in: object) -> SwapQuote:
        """Smallest exact-in swap of *asset_in* that delivers at least *amount_out*."""
        reserve_in, reserve_out = self._reserves.oriented(parse_asset(asset_in))
        return quote_in(
            reserve_in, reserve_out, amount_out, self.config.fee_bps, self.config.claimable_fee_share_bps
        )

    def pool_state(self) -> PoolRecord:
        reserve_a, reserve_b = self._reserves.reserves()
        return PoolRecord(
            status=self._status,
            reserve_a=reserve_a,
            reserve_b=reserve_b,
            total_shares=self._shares.total_shares,
            acc_fee_per_share_a=self._fees.acc_fee_per_share(Asset.A),
            acc_fee_per_share_b=self._fees.acc_fee_per_share(Asset.B),
            fee_balance_a=self._fees.fee_balance(Asset.A),
            fee_balance_b=self._fees.fee_balance(Asset.B),
            fee_dust_a=self._fees.dust(Asset.A),
            fee_dust_b=self._fees.dust(Asset.B),
        )

    def position(self, participant: PubKey) -> Optional[PositionRecord]:
        return self.positions().get(participant)

    def positions(self) -> Dict[PubKey, PositionRecord]:
        balances = self._shares.positions()
        checkpoints = self._fees.checkpoints()
        out: Dict[PubKey, PositionRecord] = {}
        for participant in sorted(set(balances) | set(checkpoints)):
            cp = checkpoints.get(participant, FeeCheckpoint())
            record = PositionRecord(
                participant=participant,
                shares=balances.get(participant, 0),
                fee_debt_a=cp.fee_debt_a,
                fee_debt_b=cp.fee_debt_b,
                fees_owed_a=cp.fees_owed_a,
                fees_owed_b=cp.fees_owed_b,
            )
            out[participant] = record
        return out

    def check_invariants(self) -> list[str]:
        return check_all(self.pool_state(), self.positions())

    def _verify_post_state(self) -> None:
        violations = self.check_invariants()
        if violations:
            raise InvariantViolation(violations)

    # -- Operations --------------------------------------------------------

    def deposit(
        self,
        participant: PubKey,
        amount_a: Amount,
        amount_b: Amount,
        *,
        min_shares: Amount = 0,
        deadline: Optional[int] = None,
    ) -> DepositResult:
        """
        Add liquidity and mint shares.

        The seeding deposit fixes the initial price and mints
        ``floor(sqrt(amount_a * amount_b))`` shares. Later deposits are sized by
        the reserve ratio (only the ratio-matched amounts are pulled in), or by
        the oracle TWAP when ``oracle_mode`` is on.
        """
        _require_participant(participant)
        require_uint("amount_a", amount_a)
        require_uint("amount_b", amount_b)
        require_uint("min_shares", min_shares)

        with self._operation("deposit", deadline):
            reserves = self._reserves.reserves()
            total = self._shares.total_shares
            if total == 0 and (amount_a == 0 or amount_b == 0):
                raise DegenerateInitialDeposit(
                    f"initial deposit must fund both assets: ({amount_a}, {amount_b})"
                )
            if amount_a == 0 or amount_b == 0:
                raise ValueError(f"deposit amounts must be positive: ({amount_a}, {amount_b})")

            if self.config.oracle_mode and total > 0:
                if self._adapter is None:
                    raise ValueError("oracle_mode requires a price oracle")
                minted = self._adapter.size_deposit(
                    now=self.clock(),
                    amount_a=amount_a,
                    amount_b=amount_b,
                    reserve_a=reserves[0],
                    reserve_b=reserves[1],
                    total_shares=total,
                )
                used_a, used_b = amount_a, amount_b
            else:
                sized = self._shares.quote_mint(amount_a, amount_b, reserves)
                minted, used_a, used_b = sized.shares_minted, sized.amount_a_used, sized.amount_b_used

            if minted < min_shares:
                raise SlippageExceeded(f"deposit mints {minted} shares < min_shares {min_shares}")

            self._fees.checkpoint(participant, self._shares.balance_of(participant))
            self._reserves.credit(Asset.A, used_a)
            self._reserves.credit(Asset.B, used_b)
            self._shares.issue(participant, minted)
            self._status = PoolStatus.ACTIVE

            self._pull(participant, Asset.A, used_a)
            self._pull(participant, Asset.B, used_b)
            self._verify_post_state()

            result = DepositResult(
                participant=participant,
                amount_a=used_a,
                amount_b=used_b,
                shares_minted=minted,
                total_shares=self._shares.total_shares,
            )
        logger.info(
            "deposit participant=%s a=%d b=%d shares=%d total_shares=%d",
            participant, used_a, used_b, minted, result.total_shares,
        )
        return result

    def withdraw(
        self,
        participant: PubKey,
        shares: Amount,
        *,
        min_amount_a: Amount = 0,
        min_amount_b: Amount = 0,
        deadline: Optional[int] = None,
    ) -> WithdrawResult:
        """Burn shares for a proportional slice of both reserves (floor)."""
        _require_participant(participant)
        require_uint("shares", shares)
        require_uint("min_amount_a", min_amount_a)
        require_uint("min_amount_b", min_amount_b)

        with self._operation("withdraw", deadline):
            self._require_active()
            held = self._shares.balance_of(participant)
            self._fees.checkpoint(participant, held)

            out_a, out_b = self._shares.burn(participant, shares, self._reserves.reserves())
            if out_a < min_amount_a or out_b < min_amount_b:
                raise SlippageExceeded(
                    f"withdraw returns ({out_a}, {out_b}) below minimum ({min_amount_a}, {min_amount_b})"
                )
            self._reserves.debit(Asset.A, out_a)
            self._reserves.debit(Asset.B, out_b)
            self._fees.forget_if_empty(participant, self._shares.balance_of(participant))

            self._push(participant, Asset.A, out_a)
            self._push(participant, Asset.B, out_b)
            self._verify_post_state()

            result = WithdrawResult(
                participant=participant,
                shares_burned=shares,
                amount_a=out_a,
                amount_b=out_b,
                total_shares=self._shares.total_shares,
            )
        logger.info(
            "withdraw participant=%s shares=%d a=%d b=%d total_shares=%d",
            participant, shares, out_a, out_b, result.total_shares,
        )
        return result

    def swap(
        self,
        participant: PubKey,
        amount_in: Amount,
        min_amount_out: Amount,
        asset_in: object,
        *,
        deadline: Optional[int] = None,
    ) -> SwapResult:
        """
        Exact-in swap of *asset_in* for the other asset.

        The quote is taken from the reserves as they stand on entry; reserves
        are updated and the product re-checked before any transfer, and checked
        once more after both transfers return.
        """
        _require_participant(participant)
        require_uint("amount_in", amount_in)
        require_uint("min_amount_out", min_amount_out)
        side_in = parse_asset(asset_in)
        side_out = side_in.other

        with self._operation("swap", deadline):
            self._require_active()
            reserve_in, reserve_out = self._reserves.oriented(side_in)
            k_before = self._reserves.product()
            q = quote_out(
                reserve_in,
                reserve_out,
                amount_in,
                self.config.fee_bps,
                self.config.claimable_fee_share_bps,
            )
            if q.amount_out < min_amount_out:
                raise SlippageExceeded(f"amount_out {q.amount_out} < min_amount_out {min_amount_out}")

            self._reserves.credit(side_in, q.amount_in - q.accrued_fee)
            self._reserves.debit(side_out, q.amount_out)
            self._fees.accrue(side_in, q.accrued_fee, self._shares.total_shares)
            if not k_non_decreasing(k_before, self._reserves.product()):
                raise InvariantViolation(["k_non_decreasing"])

            self._pull(participant, side_in, q.amount_in)
            self._push(participant, side_out, q.amount_out)

            k_after = self._reserves.product()
            if not k_non_decreasing(k_before, k_after):
                raise InvariantViolation(["k_non_decreasing"])
            if self._reserves.oriented(side_in) != (q.new_reserve_in, q.new_reserve_out):
                raise InvariantViolation(["reserves_match_quote"])
            self._verify_post_state()

            result = SwapResult(
                participant=participant,
                asset_in=side_in,
                amount_in=q.amount_in,
                amount_out=q.amount_out,
                fee_amount=q.fee_amount,
                accrued_fee=q.accrued_fee,
                k_before=k_before,
                k_after=k_after,
            )
        logger.info(
            "swap participant=%s in=%s:%d out=%s:%d fee=%d",
            participant, side_in.value, q.amount_in, side_out.value, q.amount_out, q.fee_amount,
        )
        return result

    def claim_fees(self, participant: PubKey, *, deadline: Optional[int] = None) -> ClaimResult:
        """Pay out every fee accrued to *participant* since their last snapshot."""
        _require_participant(participant)

        with self._operation("claim_fees", deadline):
            self._require_active()
            shares = self._shares.balance_of(participant)
            fee_a, fee_b = self._fees.claim(participant, shares)
            self._fees.forget_if_empty(participant, shares)

            if fee_a:
                self._push(participant, Asset.A, fee_a)
            if fee_b:
                self._push(participant, Asset.B, fee_b)
            self._verify_post_state()

            result = ClaimResult(participant=participant, fee_a=fee_a, fee_b=fee_b)
        logger.info("claim_fees participant=%s a=%d b=%d", participant, fee_a, fee_b)
        return result

    # -- Persistence -------------------------------------------------------

    def load_records(self, pool: PoolRecord, positions: Mapping[PubKey, PositionRecord]) -> None:
        """
        Replace the ledgers with persisted records.

        Raises:
            InvariantViolation: If the records are inconsistent
        """
        violations = check_all(pool, positions)
        if violations:
            raise InvariantViolation(violations)
        if self._locked:
            raise ReentrancyDetected("cannot load records during an operation")

        reserves = ReserveLedger(pool.reserve_a, pool.reserve_b)
        shares = ShareLedger()
        fees = FeeAccrualLedger()
        checkpoints: Dict[PubKey, FeeCheckpoint] = {}
        for participant, pos in sorted(positions.items()):
            if participant != pos.participant:
                raise ValueError(f"position key {participant!r} does not match record")
            if pos.shares:
                shares.issue(participant, pos.shares)
            checkpoints[participant] = FeeCheckpoint(
                fee_debt_a=pos.fee_debt_a,
                fee_debt_b=pos.fee_debt_b,
                fees_owed_a=pos.fees_owed_a,
                fees_owed_b=pos.fees_owed_b,
            )
        fees.restore(
            acc={Asset.A: pool.acc_fee_per_share_a, Asset.B: pool.acc_fee_per_share_b},
            balance={Asset.A: pool.fee_balance_a, Asset.B: pool.fee_balance_b},
            dust={Asset.A: pool.fee_dust_a, Asset.B: pool.fee_dust_b},
            checkpoints=checkpoints,
        )
        self._status = pool.status
        self._reserves = reserves
        self._shares = shares
        self._fees = fees

    # -- Internals ---------------------------------------------------------

    def _require_active(self) -> None:
        if self._status != PoolStatus.ACTIVE:
            raise InsufficientLiquidity("pool has not been seeded")

    def _pull(self, participant: PubKey, asset: Asset, amount: Amount) -> None:
        if amount == 0:
            return
        if not self.transfer.transfer_in(participant, asset, amount):
            raise TransferFailed(f"transfer_in of {amount} {asset.value} from {participant} failed")

    def _push(self, participant: PubKey, asset: Asset, amount: Amount) -> None:
        if amount == 0:
            return
        if not self.transfer.transfer_out(participant, asset, amount):
            raise TransferFailed(f"transfer_out of {amount} {asset.value} to {participant} failed")

    def __repr__(self) -> str:
        reserve_a, reserve_b = self._reserves.reserves()
        return (
            f"PoolController(status={self._status.value}, A={reserve_a}, B={reserve_b}, "
            f"shares={self._shares.total_shares})"
        )
