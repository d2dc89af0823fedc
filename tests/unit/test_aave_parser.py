"""Unit tests for Aave v3 decoding, ray math and position formatting."""
from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest

from liquidation_bot.protocols.aave.abi import RESERVE_FIELDS, USER_RESERVE_FIELDS
from liquidation_bot.protocols.aave.models import (
    BaseCurrencyInfo,
    RawUserPosition,
    ReserveData,
    ReservesSnapshot,
    UserReserveData,
)
from liquidation_bot.protocols.aave.parser import (
    NO_DEBT_HEALTH_FACTOR,
    RAY,
    SECONDS_PER_YEAR,
    calc_health_factor,
    compounded_interest,
    effective_threshold_and_bonus,
    format_user_position,
    linear_interest,
    parse_reserve,
    parse_reserves_snapshot,
    parse_user_position,
    price_in_usd,
    ray_mul,
)

WETH = "0x000000000000000000000000000000000000000a"
USDC = "0x000000000000000000000000000000000000000b"
WXTZ = "0x000000000000000000000000000000000000000c"
USER = "0x1111111111111111111111111111111111111111"
NOW = 1_700_000_000

# Reference currency is USD with 8 decimals, as on most v3 markets.
BASE = BaseCurrencyInfo(
    market_reference_currency_unit=10**8,
    market_reference_currency_price_in_usd=10**8,
)


def _reserve(
    address: str,
    symbol: str,
    decimals: int,
    price_usd: int,
    threshold: int = 8000,
    bonus: int = 10500,
    **overrides: Any,
) -> ReserveData:
    fields = dict(
        underlying_asset=address,
        name=symbol,
        symbol=symbol,
        decimals=decimals,
        liquidation_threshold=threshold,
        liquidation_bonus=bonus,
        usage_as_collateral_enabled=threshold > 0,
        liquidity_index=RAY,
        variable_borrow_index=RAY,
        liquidity_rate=0,
        variable_borrow_rate=0,
        last_update_timestamp=NOW,
        price_in_market_reference_currency=price_usd * 10**8,
    )
    fields.update(overrides)
    return ReserveData(**fields)


def _snapshot(*reserves: ReserveData) -> ReservesSnapshot:
    return ReservesSnapshot(reserves=reserves, base_currency=BASE, fetched_at=NOW)


def _raw_struct(fields: tuple[tuple[str, str], ...], values: dict[str, Any]) -> tuple:
    defaults = {"address": "0x" + "0" * 40, "string": "", "bool": False}
    return tuple(values.get(name, defaults.get(sol_type, 0)) for sol_type, name in fields)


class TestDecoding:
    def test_parse_reserve(self) -> None:
        raw = _raw_struct(
            RESERVE_FIELDS,
            {
                "underlyingAsset": WETH,
                "name": "Wrapped Ether",
                "symbol": "WETH",
                "decimals": 18,
                "reserveLiquidationThreshold": 8250,
                "reserveLiquidationBonus": 10500,
                "usageAsCollateralEnabled": True,
                "liquidityIndex": RAY,
                "variableBorrowIndex": RAY,
                "lastUpdateTimestamp": NOW,
                "priceInMarketReferenceCurrency": 3000 * 10**8,
                "eModeCategoryId": 1,
                "eModeLiquidationThreshold": 9300,
                "eModeLiquidationBonus": 10100,
            },
        )
        reserve = parse_reserve(raw)
        assert reserve.symbol == "WETH"
        assert reserve.decimals == 18
        assert reserve.liquidation_threshold == 8250
        assert reserve.emode_liquidation_bonus == 10100
        assert reserve.price_in_market_reference_currency == 3000 * 10**8

    def test_parse_reserve_wrong_length(self) -> None:
        with pytest.raises(ValueError, match="struct members"):
            parse_reserve((WETH, "Wrapped Ether"))

    def test_parse_reserves_snapshot(self) -> None:
        raw_reserve = _raw_struct(RESERVE_FIELDS, {"underlyingAsset": WETH, "symbol": "WETH"})
        snapshot = parse_reserves_snapshot(([raw_reserve], (10**8, 10**8, 0, 8)), fetched_at=NOW)
        assert len(snapshot.reserves) == 1
        assert snapshot.base_currency.market_reference_currency_unit == 10**8
        assert WETH.lower() in snapshot.by_address()

    def test_parse_user_position(self) -> None:
        raw = _raw_struct(
            USER_RESERVE_FIELDS,
            {"underlyingAsset": USDC, "scaledVariableDebt": 5 * 10**6},
        )
        position = parse_user_position(USER, ([raw], 2))
        assert position.emode_category_id == 2
        assert position.user_reserves[0].scaled_variable_debt == 5 * 10**6


class TestRayMath:
    def test_ray_mul_identity(self) -> None:
        assert ray_mul(12345, RAY) == 12345

    def test_no_time_elapsed(self) -> None:
        assert linear_interest(RAY // 10, NOW, NOW) == RAY
        assert compounded_interest(RAY // 10, NOW, NOW) == RAY

    def test_linear_interest_one_year(self) -> None:
        assert linear_interest(RAY // 10, NOW - SECONDS_PER_YEAR, NOW) == RAY + RAY // 10

    def test_compounded_exceeds_linear(self) -> None:
        rate = RAY // 10
        start = NOW - SECONDS_PER_YEAR
        compounded = compounded_interest(rate, start, NOW)
        assert compounded > linear_interest(rate, start, NOW)
        # e^0.1 ~= 1.10517
        assert compounded / RAY == pytest.approx(1.10517, abs=1e-4)


class TestValuation:
    def test_price_in_usd(self) -> None:
        reserve = _reserve(WETH, "WETH", 18, 3000)
        assert price_in_usd(reserve, BASE) == Decimal(3000)

    def test_price_in_eth_reference_currency(self) -> None:
        eth_base = BaseCurrencyInfo(
            market_reference_currency_unit=10**18,
            market_reference_currency_price_in_usd=2000 * 10**8,
        )
        reserve = _reserve(
            USDC, "USDC", 6, 0, price_in_market_reference_currency=5 * 10**14
        )
        assert price_in_usd(reserve, eth_base) == Decimal(1)

    def test_emode_overrides_when_category_matches(self) -> None:
        reserve = _reserve(
            WETH, "WETH", 18, 3000,
            emode_category_id=1, emode_liquidation_threshold=9300, emode_liquidation_bonus=10100,
        )
        assert effective_threshold_and_bonus(reserve, 1) == (9300, 10100)
        assert effective_threshold_and_bonus(reserve, 0) == (8000, 10500)
        assert effective_threshold_and_bonus(reserve, 2) == (8000, 10500)

    def test_health_factor_without_debt(self) -> None:
        assert calc_health_factor(Decimal(100), Decimal(0)) == NO_DEBT_HEALTH_FACTOR


class TestFormatUserPosition:
    def test_underwater_position(self) -> None:
        snapshot = _snapshot(
            _reserve(WETH, "WETH", 18, 1000),
            _reserve(USDC, "USDC", 6, 1),
        )
        raw = RawUserPosition(
            user_address=USER,
            user_reserves=(
                UserReserveData(WETH, 10**18, True),
                UserReserveData(USDC, 0, False, scaled_variable_debt=2000 * 10**6),
            ),
        )

        position = format_user_position(USER, snapshot, raw, now=NOW)

        # 1000 * 0.80 / 2000
        assert position.health_factor == pytest.approx(0.4)
        assert [a.symbol for a in position.collateral_assets] == ["WETH"]
        weth = position.collateral_assets[0]
        assert weth.balance == str(10**18)
        assert weth.balance_usd == pytest.approx(1000.0)
        assert weth.price == pytest.approx(1000.0)
        assert weth.liquidation_bonus == 10500
        assert position.debt_assets[0].balance_usd == pytest.approx(2000.0)

    def test_debt_sorted_by_usd_value(self) -> None:
        snapshot = _snapshot(
            _reserve(WETH, "WETH", 18, 1000),
            _reserve(USDC, "USDC", 6, 1),
            _reserve(WXTZ, "WXTZ", 18, 1),
        )
        raw = RawUserPosition(
            user_address=USER,
            user_reserves=(
                UserReserveData(WETH, 10**18, True),
                UserReserveData(USDC, 0, False, scaled_variable_debt=100 * 10**6),
                UserReserveData(WXTZ, 0, False, scaled_variable_debt=500 * 10**18),
            ),
        )
        position = format_user_position(USER, snapshot, raw, now=NOW)
        assert [a.symbol for a in position.debt_assets] == ["WXTZ", "USDC"]

    def test_supply_not_enabled_as_collateral_has_no_bonus(self) -> None:
        snapshot = _snapshot(_reserve(WETH, "WETH", 18, 1000), _reserve(USDC, "USDC", 6, 1))
        raw = RawUserPosition(
            user_address=USER,
            user_reserves=(
                UserReserveData(WETH, 10**18, False),
                UserReserveData(USDC, 0, False, scaled_variable_debt=100 * 10**6),
            ),
        )
        position = format_user_position(USER, snapshot, raw, now=NOW)
        assert position.collateral_assets[0].liquidation_bonus == 0
        assert position.health_factor == 0.0

    def test_no_debt(self) -> None:
        snapshot = _snapshot(_reserve(WETH, "WETH", 18, 1000))
        raw = RawUserPosition(user_address=USER, user_reserves=(UserReserveData(WETH, 10**18, True),))
        position = format_user_position(USER, snapshot, raw, now=NOW)
        assert position.health_factor == NO_DEBT_HEALTH_FACTOR
        assert position.debt_assets == ()

    def test_unknown_reserve_ignored(self) -> None:
        snapshot = _snapshot(_reserve(WETH, "WETH", 18, 1000))
        raw = RawUserPosition(
            user_address=USER,
            user_reserves=(UserReserveData(USDC, 10**6, True),),
        )
        position = format_user_position(USER, snapshot, raw, now=NOW)
        assert position.collateral_assets == ()

    def test_interest_accrued_since_last_update(self) -> None:
        snapshot = _snapshot(
            _reserve(WETH, "WETH", 18, 1000, liquidity_rate=RAY // 10,
                     last_update_timestamp=NOW - SECONDS_PER_YEAR),
        )
        raw = RawUserPosition(user_address=USER, user_reserves=(UserReserveData(WETH, 10**18, True),))
        position = format_user_position(USER, snapshot, raw, now=NOW)
        assert position.collateral_assets[0].balance_units == 11 * 10**17
