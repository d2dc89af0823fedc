"""ABI fragments for the Aave v3 UI pool data provider."""
from __future__ import annotations

from typing import Any

# (solidity type, field name) in declaration order of IUiPoolDataProviderV3.
RESERVE_FIELDS: tuple[tuple[str, str], ...] = (
    ("address", "underlyingAsset"),
    ("string", "name"),
    ("string", "symbol"),
    ("uint256", "decimals"),
    ("uint256", "baseLTVasCollateral"),
    ("uint256", "reserveLiquidationThreshold"),
    ("uint256", "reserveLiquidationBonus"),
    ("uint256", "reserveFactor"),
    ("bool", "usageAsCollateralEnabled"),
    ("bool", "borrowingEnabled"),
    ("bool", "stableBorrowRateEnabled"),
    ("bool", "isActive"),
    ("bool", "isFrozen"),
    ("uint128", "liquidityIndex"),
    ("uint128", "variableBorrowIndex"),
    ("uint128", "liquidityRate"),
    ("uint128", "variableBorrowRate"),
    ("uint128", "stableBorrowRate"),
    ("uint40", "lastUpdateTimestamp"),
    ("address", "aTokenAddress"),
    ("address", "stableDebtTokenAddress"),
    ("address", "variableDebtTokenAddress"),
    ("address", "interestRateStrategyAddress"),
    ("uint256", "availableLiquidity"),
    ("uint256", "totalPrincipalStableDebt"),
    ("uint256", "averageStableRate"),
    ("uint256", "stableDebtLastUpdateTimestamp"),
    ("uint256", "totalScaledVariableDebt"),
    ("uint256", "priceInMarketReferenceCurrency"),
    ("address", "priceOracle"),
    ("uint256", "variableRateSlope1"),
    ("uint256", "variableRateSlope2"),
    ("uint256", "stableRateSlope1"),
    ("uint256", "stableRateSlope2"),
    ("uint256", "baseStableBorrowRate"),
    ("uint256", "baseVariableBorrowRate"),
    ("uint256", "optimalUsageRatio"),
    ("bool", "isPaused"),
    ("bool", "isSiloedBorrowing"),
    ("uint128", "accruedToTreasury"),
    ("uint128", "unbacked"),
    ("uint128", "isolationModeTotalDebt"),
    ("bool", "flashLoanEnabled"),
    ("uint256", "debtCeiling"),
    ("uint256", "debtCeilingDecimals"),
    ("uint8", "eModeCategoryId"),
    ("uint256", "borrowCap"),
    ("uint256", "supplyCap"),
    ("uint16", "eModeLtv"),
    ("uint16", "eModeLiquidationThreshold"),
    ("uint16", "eModeLiquidationBonus"),
    ("address", "eModePriceSource"),
    ("string", "eModeLabel"),
    ("bool", "borrowableInIsolation"),
)

BASE_CURRENCY_FIELDS: tuple[tuple[str, str], ...] = (
    ("uint256", "marketReferenceCurrencyUnit"),
    ("int256", "marketReferenceCurrencyPriceInUsd"),
    ("int256", "networkBaseTokenPriceInUsd"),
    ("uint8", "networkBaseTokenPriceDecimals"),
)

USER_RESERVE_FIELDS: tuple[tuple[str, str], ...] = (
    ("address", "underlyingAsset"),
    ("uint256", "scaledATokenBalance"),
    ("bool", "usageAsCollateralEnabledOnUser"),
    ("uint256", "stableBorrowRate"),
    ("uint256", "scaledVariableDebt"),
    ("uint256", "principalStableDebt"),
    ("uint256", "stableBorrowLastUpdateTimestamp"),
)


def _components(fields: tuple[tuple[str, str], ...]) -> list[dict[str, str]]:
    return [{"internalType": t, "name": n, "type": t} for t, n in fields]


def _address_input(name: str) -> dict[str, str]:
    return {"internalType": "address", "name": name, "type": "address"}


UI_POOL_DATA_PROVIDER_ABI: list[dict[str, Any]] = [
    {
        "inputs": [_address_input("provider")],
        "name": "getReservesData",
        "outputs": [
            {
                "components": _components(RESERVE_FIELDS),
                "internalType": "struct IUiPoolDataProviderV3.AggregatedReserveData[]",
                "name": "",
                "type": "tuple[]",
            },
            {
                "components": _components(BASE_CURRENCY_FIELDS),
                "internalType": "struct IUiPoolDataProviderV3.BaseCurrencyInfo",
                "name": "",
                "type": "tuple",
            },
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [_address_input("provider"), _address_input("user")],
        "name": "getUserReservesData",
        "outputs": [
            {
                "components": _components(USER_RESERVE_FIELDS),
                "internalType": "struct IUiPoolDataProviderV3.UserReserveData[]",
                "name": "",
                "type": "tuple[]",
            },
            {"internalType": "uint8", "name": "", "type": "uint8"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]
