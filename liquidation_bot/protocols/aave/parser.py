"""Pure parsing and valuation functions for Aave v3 data: no I/O."""
from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from ...models import Asset, UserPositionSnapshot
from ...units import from_base_units
from .abi import BASE_CURRENCY_FIELDS, RESERVE_FIELDS, USER_RESERVE_FIELDS
from .models import (
    BaseCurrencyInfo,
    RawUserPosition,
    ReserveData,
    ReservesSnapshot,
    UserReserveData,
)

RAY = 10**27
HALF_RAY = RAY // 2
SECONDS_PER_YEAR = 365 * 24 * 60 * 60
USD_DECIMALS = 8
BPS = 10_000

# Health factor reported for users without debt.
NO_DEBT_HEALTH_FACTOR = -1.0


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _named(raw: Sequence[Any], fields: tuple[tuple[str, str], ...]) -> dict[str, Any]:
    if len(raw) != len(fields):
        raise ValueError(f"Expected {len(fields)} struct members, got {len(raw)}")
    return {name: value for (_, name), value in zip(fields, raw)}


def parse_reserve(raw: Sequence[Any]) -> ReserveData:
    """Build a ReserveData from one decoded AggregatedReserveData tuple."""
    r = _named(raw, RESERVE_FIELDS)
    return ReserveData(
        underlying_asset=r["underlyingAsset"],
        name=r["name"],
        symbol=r["symbol"],
        decimals=int(r["decimals"]),
        liquidation_threshold=int(r["reserveLiquidationThreshold"]),
        liquidation_bonus=int(r["reserveLiquidationBonus"]),
        usage_as_collateral_enabled=bool(r["usageAsCollateralEnabled"]),
        liquidity_index=int(r["liquidityIndex"]),
        variable_borrow_index=int(r["variableBorrowIndex"]),
        liquidity_rate=int(r["liquidityRate"]),
        variable_borrow_rate=int(r["variableBorrowRate"]),
        last_update_timestamp=int(r["lastUpdateTimestamp"]),
        price_in_market_reference_currency=int(r["priceInMarketReferenceCurrency"]),
        emode_category_id=int(r["eModeCategoryId"]),
        emode_liquidation_threshold=int(r["eModeLiquidationThreshold"]),
        emode_liquidation_bonus=int(r["eModeLiquidationBonus"]),
    )


def parse_base_currency(raw: Sequence[Any]) -> BaseCurrencyInfo:
    b = _named(raw, BASE_CURRENCY_FIELDS)
    return BaseCurrencyInfo(
        market_reference_currency_unit=int(b["marketReferenceCurrencyUnit"]),
        market_reference_currency_price_in_usd=int(b["marketReferenceCurrencyPriceInUsd"]),
        network_base_token_price_in_usd=int(b["networkBaseTokenPriceInUsd"]),
        network_base_token_price_decimals=int(b["networkBaseTokenPriceDecimals"]),
    )


def parse_reserves_snapshot(result: Sequence[Any], fetched_at: int) -> ReservesSnapshot:
    """Decode the ``getReservesData`` return value ``(reserves[], baseCurrency)``."""
    reserves_raw, base_raw = result
    return ReservesSnapshot(
        reserves=tuple(parse_reserve(r) for r in reserves_raw),
        base_currency=parse_base_currency(base_raw),
        fetched_at=fetched_at,
    )


def parse_user_reserve(raw: Sequence[Any]) -> UserReserveData:
    u = _named(raw, USER_RESERVE_FIELDS)
    return UserReserveData(
        underlying_asset=u["underlyingAsset"],
        scaled_a_token_balance=int(u["scaledATokenBalance"]),
        usage_as_collateral_enabled_on_user=bool(u["usageAsCollateralEnabledOnUser"]),
        stable_borrow_rate=int(u["stableBorrowRate"]),
        scaled_variable_debt=int(u["scaledVariableDebt"]),
        principal_stable_debt=int(u["principalStableDebt"]),
        stable_borrow_last_update_timestamp=int(u["stableBorrowLastUpdateTimestamp"]),
    )


def parse_user_position(user_address: str, result: Sequence[Any]) -> RawUserPosition:
    """Decode the ``getUserReservesData`` return value ``(userReserves[], eModeId)``."""
    reserves_raw, emode_id = result
    return RawUserPosition(
        user_address=user_address,
        user_reserves=tuple(parse_user_reserve(r) for r in reserves_raw),
        emode_category_id=int(emode_id),
    )


# ---------------------------------------------------------------------------
# Ray math (mirrors the on-chain MathUtils / WadRayMath)
# ---------------------------------------------------------------------------


def ray_mul(a: int, b: int) -> int:
    return (a * b + HALF_RAY) // RAY


def linear_interest(rate: int, last_update: int, now: int) -> int:
    """Supply-side accrual: ``1 + rate * dt / year`` in ray."""
    elapsed = max(now - last_update, 0)
    return RAY + rate * elapsed // SECONDS_PER_YEAR


def compounded_interest(rate: int, last_update: int, now: int) -> int:
    """Borrow-side accrual, third-order binomial approximation in ray."""
    exp = max(now - last_update, 0)
    if exp == 0:
        return RAY

    exp_minus_one = exp - 1
    exp_minus_two = max(exp - 2, 0)

    base_power_two = ray_mul(rate, rate) // (SECONDS_PER_YEAR * SECONDS_PER_YEAR)
    base_power_three = ray_mul(base_power_two, rate) // SECONDS_PER_YEAR

    second_term = exp * exp_minus_one * base_power_two // 2
    third_term = exp * exp_minus_one * exp_minus_two * base_power_three // 6

    return RAY + rate * exp // SECONDS_PER_YEAR + second_term + third_term


def underlying_balance(reserve: ReserveData, user: UserReserveData, now: int) -> int:
    income = ray_mul(
        linear_interest(reserve.liquidity_rate, reserve.last_update_timestamp, now),
        reserve.liquidity_index,
    )
    return ray_mul(user.scaled_a_token_balance, income)


def total_debt(reserve: ReserveData, user: UserReserveData, now: int) -> int:
    """Variable plus stable debt of the user in base units."""
    normalized_debt = ray_mul(
        compounded_interest(
            reserve.variable_borrow_rate, reserve.last_update_timestamp, now
        ),
        reserve.variable_borrow_index,
    )
    variable = ray_mul(user.scaled_variable_debt, normalized_debt)

    stable = 0
    if user.principal_stable_debt:
        stable = ray_mul(
            user.principal_stable_debt,
            compounded_interest(
                user.stable_borrow_rate, user.stable_borrow_last_update_timestamp, now
            ),
        )
    return variable + stable


# ---------------------------------------------------------------------------
# Valuation
# ---------------------------------------------------------------------------


def price_in_usd(reserve: ReserveData, base: BaseCurrencyInfo) -> Decimal:
    """Convert the oracle price from market reference currency to USD."""
    if base.market_reference_currency_unit <= 0:
        return Decimal(0)
    in_reference = Decimal(reserve.price_in_market_reference_currency) / Decimal(
        base.market_reference_currency_unit
    )
    reference_usd = Decimal(base.market_reference_currency_price_in_usd).scaleb(-USD_DECIMALS)
    return in_reference * reference_usd


def effective_threshold_and_bonus(reserve: ReserveData, user_emode: int) -> tuple[int, int]:
    """Liquidation threshold and bonus (bps), using eMode values when they apply."""
    if (
        user_emode
        and reserve.emode_category_id == user_emode
        and reserve.emode_liquidation_threshold
    ):
        return reserve.emode_liquidation_threshold, reserve.emode_liquidation_bonus
    return reserve.liquidation_threshold, reserve.liquidation_bonus


def calc_health_factor(threshold_weighted_collateral_usd: Decimal, debt_usd: Decimal) -> float:
    """health_factor = sum(collateral_usd * threshold) / debt_usd, -1 without debt."""
    if debt_usd <= 0:
        return NO_DEBT_HEALTH_FACTOR
    return float(threshold_weighted_collateral_usd / debt_usd)


def _asset(
    reserve: ReserveData, amount: int, usd: Decimal, price: Decimal, bonus: int
) -> Asset:
    return Asset(
        name=reserve.name,
        symbol=reserve.symbol,
        address=reserve.underlying_asset,
        decimals=reserve.decimals,
        balance=str(amount),
        balance_usd=float(usd),
        price=float(price),
        liquidation_bonus=bonus,
    )


def format_user_position(
    user_address: str,
    snapshot: ReservesSnapshot,
    raw: RawUserPosition,
    now: int | None = None,
) -> UserPositionSnapshot:
    """Value every user reserve in USD and split it into collateral and debt.

    Collateral is any positive supplied balance. Supplies the user has not
    enabled as collateral keep a zero liquidation bonus since the pool will
    not let them be seized. Debt assets are sorted by USD value, largest
    first.
    """
    timestamp = snapshot.fetched_at if now is None else now
    reserves = snapshot.by_address()

    collateral: list[Asset] = []
    debt: list[Asset] = []
    weighted_collateral_usd = Decimal(0)
    total_debt_usd = Decimal(0)

    for user_reserve in raw.user_reserves:
        reserve = reserves.get(user_reserve.underlying_asset.lower())
        if reserve is None:
            continue

        price = price_in_usd(reserve, snapshot.base_currency)
        threshold, bonus = effective_threshold_and_bonus(reserve, raw.emode_category_id)

        supplied = underlying_balance(reserve, user_reserve, timestamp)
        if supplied > 0:
            supplied_usd = from_base_units(supplied, reserve.decimals) * price
            is_collateral = (
                user_reserve.usage_as_collateral_enabled_on_user and threshold > 0
            )
            if is_collateral:
                weighted_collateral_usd += supplied_usd * threshold / BPS
            collateral.append(
                _asset(reserve, supplied, supplied_usd, price, bonus if is_collateral else 0)
            )

        borrowed = total_debt(reserve, user_reserve, timestamp)
        if borrowed > 0:
            borrowed_usd = from_base_units(borrowed, reserve.decimals) * price
            total_debt_usd += borrowed_usd
            debt.append(_asset(reserve, borrowed, borrowed_usd, price, bonus))

    debt.sort(key=lambda a: a.balance_usd, reverse=True)

    return UserPositionSnapshot(
        user_address=user_address,
        health_factor=calc_health_factor(weighted_collateral_usd, total_debt_usd),
        collateral_assets=tuple(collateral),
        debt_assets=tuple(debt),
    )
