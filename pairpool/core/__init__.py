"""
Core pool algorithms
"""

from .commands import PoolCommand, PoolStepResult, step, step_or_raise
from .config import PoolConfig, load_pool_config, pool_config_from_mapping
from .controller import PoolController
from .fees import FEE_PER_SHARE_SCALE, FeeAccrualLedger, FeeCheckpoint
from .invariants import INVARIANT_REGISTRY, check_all
from .oracle import OracleState, OracleValuationAdapter, PriceOracle, StaticPriceOracle, is_fresh
from .pricing import PRICE_SCALE, SwapQuote, min_amount_out, quote_in, quote_out, spot_price_e18
from .transfer import AssetTransfer, InMemoryAssetTransfer, RollbackableTransfer

__all__ = [
    "PoolCommand",
    "PoolStepResult",
    "step",
    "step_or_raise",
    "PoolConfig",
    "load_pool_config",
    "pool_config_from_mapping",
    "PoolController",
    "FEE_PER_SHARE_SCALE",
    "FeeAccrualLedger",
    "FeeCheckpoint",
    "INVARIANT_REGISTRY",
    "check_all",
    "OracleState",
    "OracleValuationAdapter",
    "PriceOracle",
    "StaticPriceOracle",
    "is_fresh",
    "PRICE_SCALE",
    "SwapQuote",
    "min_amount_out",
    "quote_in",
    "quote_out",
    "spot_price_e18",
    "AssetTransfer",
    "InMemoryAssetTransfer",
    "RollbackableTransfer",
]
