"""Exception types for the pool engine.

Every public pool operation either completes or raises one of these after the
controller has rolled all ledgers back to their pre-operation state.
``step()`` in ``commands.py`` converts them into a ``PoolStepResult`` for
callers that prefer result inspection over exceptions.
"""

from __future__ import annotations


class PoolError(Exception):
    """Base class for all typed pool failures."""


class ArithmeticOverflow(PoolError):
    """Raised when a value or intermediate product leaves its fixed width."""


class DivisionByZero(PoolError):
    """Raised when a fixed-point division is asked to divide by zero."""


class InsufficientReserves(PoolError):
    """Raised when a debit would drive a reserve below zero."""


class InsufficientLiquidity(PoolError):
    """Raised when a swap is quoted against an empty or too-shallow pool."""


class InsufficientShares(PoolError):
    """Raised when a participant burns more shares than they hold."""


class DegenerateInitialDeposit(PoolError):
    """Raised when the seeding deposit cannot define an exchange rate."""


class ZeroLiquidityOut(PoolError):
    """Raised when a mint or burn would round one side down to zero."""


class SlippageExceeded(PoolError):
    """Raised when the executed quote is worse than the caller's bound."""


class NothingToClaim(PoolError):
    """Raised when a participant has no accrued fees."""


class TransferFailed(PoolError):
    """Raised when the asset-transfer collaborator reports failure."""


class StaleOracleData(PoolError):
    """Raised when the oracle reading is too old, from the future, or off-market."""


class ReentrancyDetected(PoolError):
    """Raised when a pool operation is entered while another is in progress."""


class Expired(PoolError):
    """Raised when an operation's deadline has passed."""


class PoolPaused(PoolError):
    """Raised when the injected config has the pool paused."""


class InvariantViolation(PoolError):
    """Raised when a post-state violates one or more pool invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
