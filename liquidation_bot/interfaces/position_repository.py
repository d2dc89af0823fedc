"""Position repository protocol: read-only store of liquidation candidates."""
from typing import Protocol

from ..models import CandidatePosition


class PositionRepository(Protocol):
    """Abstract interface for the indexer's candidate table."""

    async def list_liquidatable_users(self) -> list[CandidatePosition]: ...
