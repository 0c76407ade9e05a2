"""
State management for the pool
"""

from .balances import Asset, BalanceTable, parse_asset
from .pool import PoolRecord, PoolStatus, PositionRecord, empty_pool_record

__all__ = [
    "Asset",
    "BalanceTable",
    "parse_asset",
    "PoolRecord",
    "PoolStatus",
    "PositionRecord",
    "empty_pool_record",
]
