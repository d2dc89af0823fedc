"""Route, build, submit and confirm one liquidation."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..errors import NoRouteFoundError
from ..interfaces.notifier import Notifier
from ..interfaces.route_provider import RouteProvider
from ..interfaces.submitter import LiquidationSubmitter
from ..models import ZERO_ADDRESS, ExecutionParams, LiquidationOpportunity, SwapRoute
from ..notifications import messages
from ..notifications.dispatch import send_alert, send_log

logger = logging.getLogger(__name__)


def build_execution_params(
    opportunity: LiquidationOpportunity, route: SwapRoute, user_address: str
) -> ExecutionParams:
    """Map a ranked opportunity and its swap route onto helper call arguments.

    The helper swaps seized collateral back into the debt token, so the
    route runs collateral -> [intermediate ->] debt.
    """
    if route.is_empty:
        raise NoRouteFoundError(
            f"No route {opportunity.collateral_token.symbol} -> "
            f"{opportunity.debt_token.symbol}"
        )

    first = route.hops[0]
    if len(route.hops) > 1:
        return ExecutionParams(
            debt_token=opportunity.debt_token.address,
            repay_amount=opportunity.debt_token.amount,
            collateral_token=opportunity.collateral_token.address,
            borrower_address=user_address,
            fee_tier_1=first.fee_tier,
            fee_tier_2=route.hops[1].fee_tier,
            intermediate_token=route.path_tokens[1],
            uses_multi_hop=True,
        )

    return ExecutionParams(
        debt_token=opportunity.debt_token.address,
        repay_amount=opportunity.debt_token.amount,
        collateral_token=opportunity.collateral_token.address,
        borrower_address=user_address,
        fee_tier_1=first.fee_tier,
        fee_tier_2=0,
        intermediate_token=ZERO_ADDRESS,
        uses_multi_hop=False,
    )


class ExecutionCoordinator:
    """Carries one opportunity from route discovery to a confirmed receipt."""

    def __init__(
        self,
        route_provider: RouteProvider,
        submitter: LiquidationSubmitter,
        confirmations: int = 2,
        notifiers: Sequence[Notifier] = (),
    ) -> None:
        self._route_provider = route_provider
        self._submitter = submitter
        self._confirmations = confirmations
        self._notifiers = tuple(notifiers)

    async def execute(self, opportunity: LiquidationOpportunity, user_address: str) -> Any:
        """Liquidate ``user_address`` and return the confirmed receipt.

        Raises:
            NoRouteFoundError: no swap path from collateral to debt token.
            SubmissionError: simulation, broadcast or confirmation failed.
            AllEndpointsFailedError: route lookup could not reach any node.

        Any failure other than a missing route is alerted before it propagates.
        """
        collateral = opportunity.collateral_token
        debt = opportunity.debt_token
        logger.info(
            "Liquidating %s: repay %d %s, seize %d %s, expected profit $%.2f",
            user_address, debt.amount, debt.symbol,
            collateral.amount, collateral.symbol, opportunity.profit_usd,
        )

        try:
            route = await self._route_provider.find_route(
                collateral.address, debt.address, amount_in=collateral.amount
            )
            params = build_execution_params(opportunity, route, user_address)
            submitted = await self._submitter.submit_liquidation(params)
            receipt = await self._submitter.wait_for_confirmation(
                submitted, self._confirmations
            )
        except NoRouteFoundError:
            raise
        except Exception as e:
            await send_alert(
                self._notifiers,
                messages.liquidation_failure(user_address, opportunity, e),
                subject="Liquidation failed",
            )
            raise

        logger.info(
            "Liquidation of %s confirmed in block %d [txHash: %s]",
            user_address, receipt["blockNumber"], submitted.tx_hash,
        )
        await send_log(
            self._notifiers,
            messages.liquidation_success(user_address, opportunity, submitted.tx_hash, receipt),
            silent=False,
        )
        return receipt
