"""Integration tests for the Aave v3 data provider with a mocked chain client."""
from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from liquidation_bot.config import ProtocolConfig
from liquidation_bot.errors import AllEndpointsFailedError
from liquidation_bot.protocols.aave.abi import RESERVE_FIELDS, USER_RESERVE_FIELDS
from liquidation_bot.protocols.aave.adapter import AaveDataProvider
from liquidation_bot.services.position_fetcher import PositionDataFetcher

RAY = 10**27
WETH = "0x000000000000000000000000000000000000000A"
USDC = "0x000000000000000000000000000000000000000B"
USER = "0x1111111111111111111111111111111111111111"


def _struct(fields: tuple[tuple[str, str], ...], values: dict[str, Any]) -> tuple:
    defaults = {"address": "0x" + "0" * 40, "string": "", "bool": False}
    return tuple(values.get(name, defaults.get(sol_type, 0)) for sol_type, name in fields)


def _reserve(address: str, symbol: str, decimals: int, price_usd: int, last_update: int) -> tuple:
    return _struct(
        RESERVE_FIELDS,
        {
            "underlyingAsset": address,
            "name": symbol,
            "symbol": symbol,
            "decimals": decimals,
            "reserveLiquidationThreshold": 8000,
            "reserveLiquidationBonus": 10500,
            "usageAsCollateralEnabled": True,
            "liquidityIndex": RAY,
            "variableBorrowIndex": RAY,
            "lastUpdateTimestamp": last_update,
            "priceInMarketReferenceCurrency": price_usd * 10**8,
        },
    )


@pytest.fixture()
def contract() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def client(contract: MagicMock) -> MagicMock:
    w3 = MagicMock(name="w3")

    async def run(operation, description: str = ""):
        return await operation(w3)

    client = MagicMock()
    client.call = AsyncMock(side_effect=run)
    client.contract.return_value = contract
    return client


@pytest.fixture()
def provider(client: MagicMock, sample_protocol_config: ProtocolConfig) -> AaveDataProvider:
    return AaveDataProvider(client, sample_protocol_config)


class TestAaveDataProvider:
    def test_protocol_name(self, provider: AaveDataProvider) -> None:
        assert provider.protocol_name == "aave-v3"

    @pytest.mark.asyncio
    async def test_reserves_snapshot(
        self, provider: AaveDataProvider, contract: MagicMock, sample_protocol_config: ProtocolConfig
    ) -> None:
        contract.functions.getReservesData.return_value.call = AsyncMock(
            return_value=(
                [_reserve(WETH, "WETH", 18, 1000, 0), _reserve(USDC, "USDC", 6, 1, 0)],
                (10**8, 10**8, 0, 8),
            )
        )

        snapshot = await provider.get_reserves_snapshot()

        assert [r.symbol for r in snapshot.reserves] == ["WETH", "USDC"]
        assert snapshot.fetched_at > 0
        contract.functions.getReservesData.assert_called_once()
        (provider_address,) = contract.functions.getReservesData.call_args.args
        assert provider_address.lower() == sample_protocol_config.pool_addresses_provider.lower()

    @pytest.mark.asyncio
    async def test_user_position_flow(self, provider: AaveDataProvider, contract: MagicMock) -> None:
        """Reserves once, then raw user data, then formatting via the fetcher."""
        contract.functions.getReservesData.return_value.call = AsyncMock(
            return_value=(
                [_reserve(WETH, "WETH", 18, 1000, 0), _reserve(USDC, "USDC", 6, 1, 0)],
                (10**8, 10**8, 0, 8),
            )
        )
        contract.functions.getUserReservesData.return_value.call = AsyncMock(
            return_value=(
                [
                    _struct(
                        USER_RESERVE_FIELDS,
                        {
                            "underlyingAsset": WETH,
                            "scaledATokenBalance": 10**18,
                            "usageAsCollateralEnabledOnUser": True,
                        },
                    ),
                    _struct(
                        USER_RESERVE_FIELDS,
                        {"underlyingAsset": USDC, "scaledVariableDebt": 2000 * 10**6},
                    ),
                ],
                0,
            )
        )

        reserves = await provider.get_reserves_snapshot()
        position = await PositionDataFetcher(provider).fetch(USER, reserves)

        assert position.user_address == USER
        assert position.health_factor == pytest.approx(0.4)
        assert position.collateral_assets[0].symbol == "WETH"
        assert position.debt_assets[0].symbol == "USDC"
        args = contract.functions.getUserReservesData.call_args.args
        assert args[1] == USER

    @pytest.mark.asyncio
    async def test_endpoint_outage_propagates(self, provider: AaveDataProvider, client: MagicMock) -> None:
        client.call.side_effect = AllEndpointsFailedError([], "getUserReservesData")
        with pytest.raises(AllEndpointsFailedError):
            await provider.get_user_raw_position(USER)
