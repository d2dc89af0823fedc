from .client import EvmClient
from .submitter import LiquidationHelperSubmitter

__all__ = ["EvmClient", "LiquidationHelperSubmitter"]
