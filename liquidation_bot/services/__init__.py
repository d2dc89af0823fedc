"""Liquidation pipeline services."""
from .bot import LiquidationBot
from .execution import ExecutionCoordinator, build_execution_params
from .orchestrator import BatchOrchestrator
from .position_fetcher import PositionDataFetcher
from .ranker import rank_opportunities
from .scheduler import CycleScheduler

__all__ = [
    "BatchOrchestrator",
    "CycleScheduler",
    "ExecutionCoordinator",
    "LiquidationBot",
    "PositionDataFetcher",
    "build_execution_params",
    "rank_opportunities",
]
