"""Protocol data provider: reserve and per-user lending data."""
from typing import Any, Protocol

from ..models import UserPositionSnapshot


class ProtocolDataProvider(Protocol):
    """Abstract interface for reading a lending protocol's state.

    The reserve snapshot and raw position types are opaque to the pipeline;
    only ``format_user_position`` output is consumed.
    """

    async def get_reserves_snapshot(self) -> Any: ...

    async def get_user_raw_position(self, user_address: str) -> Any: ...

    def format_user_position(
        self, user_address: str, snapshot: Any, raw_position: Any
    ) -> UserPositionSnapshot: ...
