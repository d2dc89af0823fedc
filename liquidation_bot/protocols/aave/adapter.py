"""Aave v3 protocol adapter: reads reserves and user positions over RPC."""
from __future__ import annotations

import logging
import time
from typing import Any

from web3 import AsyncWeb3

from ...chains.evm.client import EvmClient
from ...config import ProtocolConfig
from ...models import UserPositionSnapshot
from . import parser
from .abi import UI_POOL_DATA_PROVIDER_ABI
from .models import RawUserPosition, ReservesSnapshot

logger = logging.getLogger(__name__)


class AaveDataProvider:
    """Fetch Aave v3 pool data through the UI pool data provider contract."""

    def __init__(self, client: EvmClient, config: ProtocolConfig) -> None:
        self._client = client
        self._ui_pool_data_provider = AsyncWeb3.to_checksum_address(
            config.ui_pool_data_provider
        )
        self._pool_addresses_provider = AsyncWeb3.to_checksum_address(
            config.pool_addresses_provider
        )

    @property
    def protocol_name(self) -> str:
        return "aave-v3"

    def _data_provider(self, w3: AsyncWeb3) -> Any:
        return self._client.contract(
            w3, self._ui_pool_data_provider, UI_POOL_DATA_PROVIDER_ABI
        )

    async def get_reserves_snapshot(self) -> ReservesSnapshot:
        """Read every reserve of the pool. Raises AllEndpointsFailedError."""
        logger.info(
            "Fetching reserve data [uiPoolDataProvider: %s, poolAddressesProvider: %s]",
            self._ui_pool_data_provider,
            self._pool_addresses_provider,
        )

        async def _read(w3: AsyncWeb3) -> Any:
            return await self._data_provider(w3).functions.getReservesData(
                self._pool_addresses_provider
            ).call()

        result = await self._client.call(_read, description="getReservesData")
        snapshot = parser.parse_reserves_snapshot(result, fetched_at=int(time.time()))
        logger.info("Fetched %d reserves", len(snapshot.reserves))
        return snapshot

    async def get_user_raw_position(self, user_address: str) -> RawUserPosition:
        """Read the scaled balances of one user. Raises AllEndpointsFailedError."""
        user = AsyncWeb3.to_checksum_address(user_address)
        logger.debug("Fetching user reserve data [user: %s]", user)

        async def _read(w3: AsyncWeb3) -> Any:
            return await self._data_provider(w3).functions.getUserReservesData(
                self._pool_addresses_provider, user
            ).call()

        result = await self._client.call(
            _read, description=f"getUserReservesData({user})"
        )
        return parser.parse_user_position(user, result)

    def format_user_position(
        self,
        user_address: str,
        snapshot: ReservesSnapshot,
        raw_position: RawUserPosition,
    ) -> UserPositionSnapshot:
        return parser.format_user_position(
            user_address, snapshot, raw_position, now=int(time.time())
        )
