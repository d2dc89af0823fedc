"""Fetch and format one user's position against a shared reserves snapshot."""
from __future__ import annotations

import logging
from typing import Any

from ..interfaces.protocol_data_provider import ProtocolDataProvider
from ..models import UserPositionSnapshot

logger = logging.getLogger(__name__)


class PositionDataFetcher:
    def __init__(self, provider: ProtocolDataProvider) -> None:
        self._provider = provider

    async def fetch(self, user_address: str, reserves: Any) -> UserPositionSnapshot:
        """Read the raw user reserves and format them into a snapshot.

        ``reserves`` is fetched once per cycle and shared by every user.
        Errors from the provider propagate to the caller.
        """
        raw = await self._provider.get_user_raw_position(user_address)
        snapshot = self._provider.format_user_position(user_address, reserves, raw)
        logger.debug(
            "Fetched %s: HF %.4f, %d collateral, %d debt",
            user_address,
            snapshot.health_factor,
            len(snapshot.collateral_assets),
            len(snapshot.debt_assets),
        )
        return snapshot
