"""
Command dispatch over a ``PoolController``.

``step(controller, cmd)`` is the result-returning entry point: it never
raises for a rejected operation and reports the typed failure by name
instead. ``step_or_raise`` re-raises for callers that prefer exceptions.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable, Literal, Mapping, Optional

from .controller import PoolController
from .errors import PoolError

CommandTag = Literal["deposit", "withdraw", "swap", "claim_fees"]


@dataclass(frozen=True)
class PoolCommand:
    tag: CommandTag
    args: Mapping[str, Any]


@dataclass(frozen=True)
class PoolStepResult:
    ok: bool
    effects: Optional[Mapping[str, Any]] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    exception: Optional[BaseException] = None


def _int_arg(args: Mapping[str, Any], name: str, default: Optional[int] = None) -> int:
    value = args.get(name, default)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"invalid param {name}")
    return value


def _opt_int_arg(args: Mapping[str, Any], name: str) -> Optional[int]:
    if args.get(name) is None:
        return None
    return _int_arg(args, name)


def _participant(args: Mapping[str, Any]) -> str:
    participant = args.get("participant")
    if not isinstance(participant, str) or not participant:
        raise ValueError("invalid param participant")
    return participant


def _deposit(controller: PoolController, args: Mapping[str, Any]) -> Any:
    return controller.deposit(
        _participant(args),
        _int_arg(args, "amount_a"),
        _int_arg(args, "amount_b"),
        min_shares=_int_arg(args, "min_shares", 0),
        deadline=_opt_int_arg(args, "deadline"),
    )


def _withdraw(controller: PoolController, args: Mapping[str, Any]) -> Any:
    return controller.withdraw(
        _participant(args),
        _int_arg(args, "shares"),
        min_amount_a=_int_arg(args, "min_amount_a", 0),
        min_amount_b=_int_arg(args, "min_amount_b", 0),
        deadline=_opt_int_arg(args, "deadline"),
    )


def _swap(controller: PoolController, args: Mapping[str, Any]) -> Any:
    return controller.swap(
        _participant(args),
        _int_arg(args, "amount_in"),
        _int_arg(args, "min_amount_out", 0),
        args.get("asset_in"),
        deadline=_opt_int_arg(args, "deadline"),
    )


def _claim_fees(controller: PoolController, args: Mapping[str, Any]) -> Any:
    return controller.claim_fees(_participant(args), deadline=_opt_int_arg(args, "deadline"))


_DISPATCH: dict[str, Callable[[PoolController, Mapping[str, Any]], Any]] = {
    "deposit": _deposit,
    "withdraw": _withdraw,
    "swap": _swap,
    "claim_fees": _claim_fees,
}


def _effects(result: Any) -> dict[str, Any]:
    effects = asdict(result)
    for key, value in effects.items():
        if hasattr(value, "value"):
            effects[key] = value.value
    return effects


def step(controller: PoolController, cmd: PoolCommand) -> PoolStepResult:
    """Execute one pool command and report the outcome."""
    handler = _DISPATCH.get(cmd.tag)
    if handler is None:
        return PoolStepResult(ok=False, error=f"unknown action: {cmd.tag}", error_type="ValueError")
    try:
        result = handler(controller, cmd.args)
    except (PoolError, ValueError, TypeError) as exc:
        return PoolStepResult(ok=False, error=str(exc), error_type=type(exc).__name__, exception=exc)
    return PoolStepResult(ok=True, effects=_effects(result))


def step_or_raise(controller: PoolController, cmd: PoolCommand) -> PoolStepResult:
    """Like ``step()`` but raises on rejection instead of returning a result."""
    result = step(controller, cmd)
    if result.ok:
        return result
    if result.exception is not None:
        raise result.exception
    raise ValueError(result.error)
