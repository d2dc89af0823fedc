"""Protocol interfaces for the liquidation bot."""
from .notifier import Notifier
from .position_repository import PositionRepository
from .protocol_data_provider import ProtocolDataProvider
from .route_provider import RouteProvider
from .submitter import LiquidationSubmitter

__all__ = [
    "LiquidationSubmitter",
    "Notifier",
    "PositionRepository",
    "ProtocolDataProvider",
    "RouteProvider",
]
