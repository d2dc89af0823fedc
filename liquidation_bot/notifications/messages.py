"""Operator message formatting for liquidation events."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..models import CycleSummary, LiquidationOpportunity


def _now_str() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _short(address: str) -> str:
    if len(address) > 16:
        return f"{address[:10]}...{address[-6:]}"
    return address


def liquidation_success(
    user_address: str, opportunity: LiquidationOpportunity, tx_hash: str, receipt: Any
) -> str:
    return (
        f"✅ Liquidation executed\n"
        f"\n"
        f"Borrower: {_short(user_address)}\n"
        f"Repaid: {opportunity.debt_token.symbol}: ${opportunity.repay_usd:,.2f}\n"
        f"Seized: {opportunity.collateral_token.symbol}: ${opportunity.seizable_usd:,.2f}\n"
        f"Expected profit: ${opportunity.profit_usd:,.2f}\n"
        f"\n"
        f"Tx: {tx_hash}\n"
        f"Block: {receipt['blockNumber']} · Gas: {receipt['gasUsed']}\n"
        f"\n"
        f"{_now_str()} UTC"
    )


def liquidation_failure(
    user_address: str, opportunity: LiquidationOpportunity, error: Exception
) -> str:
    tx_hash = getattr(error, "tx_hash", None)
    tx_line = f"Tx: {tx_hash}\n" if tx_hash else ""
    return (
        f"🚨 Liquidation failed\n"
        f"\n"
        f"Borrower: {_short(user_address)}\n"
        f"Pair: {opportunity.collateral_token.symbol} / {opportunity.debt_token.symbol}\n"
        f"Expected profit: ${opportunity.profit_usd:,.2f}\n"
        f"{tx_line}"
        f"\n"
        f"Error: {error}\n"
        f"\n"
        f"{_now_str()} UTC"
    )


def cycle_report(summary: CycleSummary) -> str:
    return (
        f"📊 Liquidation cycle\n"
        f"\n"
        f"Candidates: {summary.candidates} · Fetched: {summary.fetched}\n"
        f"Executed: {summary.executed} · Failed: {summary.execution_failures}\n"
        f"No route: {summary.no_route} · Unprofitable: {summary.unprofitable}\n"
        f"\n"
        f"{_now_str()} UTC"
    )
