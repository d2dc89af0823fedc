"""Route provider protocol: swap path discovery."""
from typing import Protocol

from ..models import SwapRoute


class RouteProvider(Protocol):
    """Abstract interface for finding a swap route between two tokens."""

    async def find_route(
        self, from_token: str, to_token: str, amount_in: int
    ) -> SwapRoute: ...
