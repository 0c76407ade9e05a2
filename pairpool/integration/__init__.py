"""
Persistence and integration layer
"""

from .pool_snapshot import (
    POOL_SNAPSHOT_VERSION,
    PoolSnapshot,
    decode_records,
    encode_records,
    restore_controller,
    snapshot_from_controller,
)

__all__ = [
    "POOL_SNAPSHOT_VERSION",
    "PoolSnapshot",
    "decode_records",
    "encode_records",
    "restore_controller",
    "snapshot_from_controller",
]
