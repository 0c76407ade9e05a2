"""
Administrative pool parameters.

``PoolConfig`` is injected into the controller and consulted at the start of
every operation; replacing it (``PoolController.set_config``) is how fee
rates, pausing and the oracle mode are changed. Files may be YAML or JSON.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from .fixed_point import BPS_DENOM


@dataclass(frozen=True)
class PoolConfig:
    """Runtime config for the pool controller."""

    fee_bps: int = 30
    claimable_fee_share_bps: int = 5_000
    paused: bool = False
    oracle_mode: bool = False
    max_oracle_staleness_seconds: int = 300
    twap_window_seconds: int = 1_800
    max_oracle_deviation_bps: int = 500

    def __post_init__(self) -> None:
        for name in ("fee_bps", "claimable_fee_share_bps", "max_oracle_deviation_bps"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if not (0 <= v <= BPS_DENOM):
                raise ValueError(f"{name} must be in [0, {BPS_DENOM}]: {v}")
        if self.fee_bps == BPS_DENOM:
            raise ValueError("fee_bps must be below 100%")
        for name in ("max_oracle_staleness_seconds", "twap_window_seconds"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v <= 0:
                raise ValueError(f"{name} must be positive: {v}")
        for name in ("paused", "oracle_mode"):
            if not isinstance(getattr(self, name), bool):
                raise TypeError(f"{name} must be a bool")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


_FIELD_NAMES = frozenset(f.name for f in fields(PoolConfig))


def pool_config_from_mapping(data: Mapping[str, Any]) -> PoolConfig:
    """Build a ``PoolConfig`` from a mapping, rejecting unknown keys."""
    if not isinstance(data, Mapping):
        raise ValueError("pool config must be a mapping")
    unknown = sorted(set(data) - _FIELD_NAMES)
    if unknown:
        raise ValueError(f"unknown pool config keys: {', '.join(unknown)}")
    return PoolConfig(**dict(data))


def load_pool_config(path: Union[str, Path]) -> PoolConfig:
    """
    Load a ``PoolConfig`` from a ``.yaml``, ``.yml`` or ``.json`` file.

    A top-level ``pool`` key is unwrapped if present, so the pool section can
    live inside a larger deployment file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the extension is unsupported or the content is not a mapping
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Config file not found: {p}")

    ext = p.suffix.lower()
    text = p.read_text(encoding="utf-8")
    if ext in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    elif ext == ".json":
        data = json.loads(text)
    else:
        raise ValueError("Unsupported config extension. Use .yaml, .yml, or .json.")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Config file root must be a mapping.")
    if isinstance(data.get("pool"), dict):
        data = data["pool"]
    return pool_config_from_mapping(data)
