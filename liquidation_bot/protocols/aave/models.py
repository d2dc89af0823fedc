"""Raw Aave v3 reserve and user data, decoded from the UI pool data provider."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ReserveData:
    underlying_asset: str
    name: str
    symbol: str
    decimals: int
    liquidation_threshold: int
    liquidation_bonus: int
    usage_as_collateral_enabled: bool
    liquidity_index: int
    variable_borrow_index: int
    liquidity_rate: int
    variable_borrow_rate: int
    last_update_timestamp: int
    price_in_market_reference_currency: int
    emode_category_id: int = 0
    emode_liquidation_threshold: int = 0
    emode_liquidation_bonus: int = 0


@dataclass(frozen=True)
class BaseCurrencyInfo:
    market_reference_currency_unit: int
    market_reference_currency_price_in_usd: int
    network_base_token_price_in_usd: int = 0
    network_base_token_price_decimals: int = 8


@dataclass(frozen=True)
class ReservesSnapshot:
    """All reserves of the pool, read once per cycle."""

    reserves: tuple[ReserveData, ...]
    base_currency: BaseCurrencyInfo
    fetched_at: int

    def by_address(self) -> dict[str, ReserveData]:
        return {r.underlying_asset.lower(): r for r in self.reserves}


@dataclass(frozen=True)
class UserReserveData:
    underlying_asset: str
    scaled_a_token_balance: int
    usage_as_collateral_enabled_on_user: bool
    stable_borrow_rate: int = 0
    scaled_variable_debt: int = 0
    principal_stable_debt: int = 0
    stable_borrow_last_update_timestamp: int = 0


@dataclass(frozen=True)
class RawUserPosition:
    user_address: str
    user_reserves: tuple[UserReserveData, ...]
    emode_category_id: int = 0
