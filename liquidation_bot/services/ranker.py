"""Profit ranking of liquidation opportunities: pure functions, no I/O."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from ..models import Asset, LiquidationOpportunity, TokenAmount
from ..units import to_base_units

logger = logging.getLogger(__name__)

BPS = 10_000

# Below this health factor the whole debt may be repaid in one call,
# otherwise only half of it (protocol close factor).
CLOSE_FACTOR_HF_THRESHOLD = 0.95


def target_repay_usd(debt_usd: float, health_factor: float) -> float:
    """Debt value a liquidator may repay before collateral caps apply."""
    if health_factor < CLOSE_FACTOR_HF_THRESHOLD:
        return debt_usd
    return debt_usd / 2


def _token_amount(asset: Asset, usd_value: float) -> TokenAmount | None:
    try:
        amount = to_base_units(usd_value / asset.price, asset.decimals)
    except (ValueError, ZeroDivisionError, OverflowError) as e:
        logger.debug("Cannot convert $%.6f of %s to base units: %s", usd_value, asset.symbol, e)
        return None
    return TokenAmount(
        address=asset.address,
        symbol=asset.symbol,
        decimals=asset.decimals,
        amount=amount,
    )


def evaluate_pair(
    collateral: Asset,
    debt: Asset,
    flat_cost: float,
    health_factor: float,
) -> LiquidationOpportunity | None:
    """Size the liquidation of one collateral against one debt asset.

    Returns None when either balance is zero or the repay amount does not
    survive conversion to base units.
    """
    if collateral.balance_units == 0 or debt.balance_units == 0:
        return None
    # Reserves without a bonus cannot be seized.
    if collateral.liquidation_bonus <= 0:
        return None

    max_seizable_usd = collateral.balance_usd
    max_debt_coverable_usd = max_seizable_usd * BPS / collateral.liquidation_bonus

    repay_usd = target_repay_usd(debt.balance_usd, health_factor)
    seizable_usd = repay_usd * collateral.liquidation_bonus / BPS

    # Collateral on hand caps what can be seized, and with it the repay side.
    if seizable_usd > max_seizable_usd:
        seizable_usd = max_seizable_usd
        repay_usd = max_debt_coverable_usd

    profit = seizable_usd - (repay_usd + flat_cost)

    debt_amount = _token_amount(debt, repay_usd)
    if debt_amount is None or debt_amount.amount == 0:
        return None
    collateral_amount = _token_amount(collateral, seizable_usd)
    if collateral_amount is None:
        return None

    return LiquidationOpportunity(
        collateral_token=collateral_amount,
        debt_token=debt_amount,
        profit_usd=profit,
        seizable_usd=seizable_usd,
        repay_usd=repay_usd,
    )


def rank_opportunities(
    collateral_assets: Sequence[Asset],
    debt_assets: Sequence[Asset],
    flat_cost: float,
    health_factor: float,
) -> list[LiquidationOpportunity]:
    """Rank every collateral asset against the largest debt, best profit first.

    ``debt_assets`` must already be sorted by USD value descending; only the
    first entry is considered. Callers filter out health factors outside
    ``[0, 1)`` before calling. Ties keep input order (stable sort).
    """
    if not debt_assets:
        return []

    debt = debt_assets[0]
    opportunities: list[LiquidationOpportunity] = []

    for collateral in collateral_assets:
        opportunity = evaluate_pair(collateral, debt, flat_cost, health_factor)
        if opportunity is not None:
            opportunities.append(opportunity)

    opportunities.sort(key=lambda o: o.profit_usd, reverse=True)
    return opportunities
