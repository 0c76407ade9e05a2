# [TESTER] v1

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pairpool.core.config import PoolConfig, load_pool_config, pool_config_from_mapping


def test_defaults() -> None:
    cfg = PoolConfig()
    assert cfg.fee_bps == 30
    assert cfg.claimable_fee_share_bps == 5_000
    assert not cfg.paused
    assert not cfg.oracle_mode


def test_validation() -> None:
    with pytest.raises(ValueError):
        PoolConfig(fee_bps=10_000)
    with pytest.raises(ValueError):
        PoolConfig(claimable_fee_share_bps=10_001)
    with pytest.raises(ValueError):
        PoolConfig(twap_window_seconds=0)
    with pytest.raises(TypeError):
        PoolConfig(paused=1)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        PoolConfig(fee_bps=True)


def test_from_mapping_rejects_unknown_keys() -> None:
    assert pool_config_from_mapping({"fee_bps": 5}).fee_bps == 5
    with pytest.raises(ValueError, match="unknown pool config keys"):
        pool_config_from_mapping({"fee": 5})


def test_load_yaml_with_pool_section(tmp_path: Path) -> None:
    path = tmp_path / "deploy.yaml"
    path.write_text("pool:\n  fee_bps: 25\n  paused: true\nother: 1\n", encoding="utf-8")
    cfg = load_pool_config(path)
    assert cfg.fee_bps == 25
    assert cfg.paused


def test_load_json(tmp_path: Path) -> None:
    path = tmp_path / "pool.json"
    path.write_text(json.dumps({"claimable_fee_share_bps": 10_000}), encoding="utf-8")
    cfg = load_pool_config(str(path))
    assert cfg.claimable_fee_share_bps == 10_000
    assert cfg.to_dict()["fee_bps"] == 30


def test_load_empty_yaml_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    assert load_pool_config(path) == PoolConfig()


def test_load_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_pool_config(tmp_path / "missing.yaml")
    bad_ext = tmp_path / "pool.toml"
    bad_ext.write_text("fee_bps = 1\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_pool_config(bad_ext)
    not_mapping = tmp_path / "list.yaml"
    not_mapping.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_pool_config(not_mapping)
