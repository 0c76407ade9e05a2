"""
pairpool: a two-asset constant-product liquidity pool.
"""

from .core.config import PoolConfig, load_pool_config
from .core.controller import (
    ClaimResult,
    DepositResult,
    PoolController,
    SwapResult,
    WithdrawResult,
)
from .core.errors import PoolError
from .core.transfer import AssetTransfer, InMemoryAssetTransfer
from .state.balances import Asset

__version__ = "0.1.0"

__all__ = [
    "Asset",
    "AssetTransfer",
    "ClaimResult",
    "DepositResult",
    "InMemoryAssetTransfer",
    "PoolConfig",
    "PoolController",
    "PoolError",
    "SwapResult",
    "WithdrawResult",
    "load_pool_config",
]
