"""
Pool state snapshot encoding.

Goals:
- Deterministic JSON serialization of the persisted Pool / Position records.
- Round-trippable into a ``PoolController`` via ``load_records``.
- Explicit versioning and a domain-separated SHA-256 commitment.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

from ..core.controller import PoolController
from ..state.balances import PubKey
from ..state.canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex
from ..state.pool import PoolRecord, PoolStatus, PositionRecord


POOL_SNAPSHOT_VERSION = 1

_POOL_INT_FIELDS = (
    "reserve_a",
    "reserve_b",
    "total_shares",
    "acc_fee_per_share_a",
    "acc_fee_per_share_b",
    "fee_balance_a",
    "fee_balance_b",
    "fee_dust_a",
    "fee_dust_b",
)
_POSITION_INT_FIELDS = ("shares", "fee_debt_a", "fee_debt_b", "fees_owed_a", "fees_owed_b")


def _require_str(value: Any, *, name: str, max_len: int = 512) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")
    if not value:
        raise ValueError(f"{name} must be non-empty")
    if len(value) > max_len:
        raise ValueError(f"{name} too large")
    return value


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


@dataclass(frozen=True)
class PoolSnapshot:
    """
    Deterministic, versioned snapshot of the persisted pool records.

    The commitment is *not* included inside ``data`` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        payload = domain_sep_bytes("pool_snapshot", version=self.version) + self.canonical_bytes()
        return hashlib.sha256(payload).digest()

    def commitment_hex(self) -> str:
        payload = domain_sep_bytes("pool_snapshot", version=self.version) + self.canonical_bytes()
        return sha256_hex(payload)


def encode_records(
    pool: PoolRecord,
    positions: Mapping[PubKey, PositionRecord],
    *,
    version: int = POOL_SNAPSHOT_VERSION,
) -> PoolSnapshot:
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")

    pool_obj: Dict[str, Any] = {"status": pool.status.value}
    for name in _POOL_INT_FIELDS:
        pool_obj[name] = int(getattr(pool, name))

    position_entries = []
    for participant, pos in positions.items():
        entry: Dict[str, Any] = {"participant": participant}
        for name in _POSITION_INT_FIELDS:
            entry[name] = int(getattr(pos, name))
        position_entries.append(entry)
    position_entries.sort(key=lambda e: e["participant"])

    data: Dict[str, Any] = {
        "version": int(version),
        "pool": pool_obj,
        "positions": position_entries,
    }
    return PoolSnapshot(version=version, data=data)


def snapshot_from_controller(controller: PoolController) -> PoolSnapshot:
    return encode_records(controller.pool_state(), controller.positions())


def decode_records(
    snapshot: Mapping[str, Any],
    *,
    max_positions: int = 200_000,
) -> Tuple[PoolRecord, Dict[PubKey, PositionRecord]]:
    if not isinstance(snapshot, Mapping):
        raise TypeError("snapshot must be a mapping")
    if not isinstance(max_positions, int) or isinstance(max_positions, bool) or max_positions <= 0:
        raise ValueError("max_positions must be a positive int")

    version = snapshot.get("version", POOL_SNAPSHOT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("snapshot.version must be a positive int")
    if version != POOL_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    pool_obj = snapshot.get("pool")
    if not isinstance(pool_obj, Mapping):
        raise TypeError("snapshot.pool must be an object")
    status_raw = pool_obj.get("status")
    try:
        status = PoolStatus(status_raw)
    except ValueError as exc:
        raise ValueError(f"invalid pool status: {status_raw!r}") from exc
    pool = PoolRecord(
        status=status,
        **{name: _require_int(pool_obj.get(name), name=f"pool.{name}") for name in _POOL_INT_FIELDS},
    )

    entries = snapshot.get("positions")
    if entries is None:
        entries = []
    if not isinstance(entries, list):
        raise TypeError("snapshot.positions must be a list")
    if len(entries) > max_positions:
        raise ValueError(f"too many position entries: {len(entries)} > {max_positions}")

    positions: Dict[PubKey, PositionRecord] = {}
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise TypeError("snapshot.positions entries must be objects")
        participant = _require_str(entry.get("participant"), name="position.participant")
        if participant in positions:
            raise ValueError(f"duplicate position entry: {participant}")
        positions[participant] = PositionRecord(
            participant=participant,
            **{name: _require_int(entry.get(name), name=f"position.{name}") for name in _POSITION_INT_FIELDS},
        )
    return pool, positions


def restore_controller(controller: PoolController, snapshot: Mapping[str, Any]) -> None:
    """Load a decoded snapshot into *controller* (invariants are checked on load)."""
    pool, positions = decode_records(snapshot)
    controller.load_records(pool, positions)
