"""Wires the liquidation pipeline from configuration and owns its resources."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..chains.evm import EvmClient, LiquidationHelperSubmitter
from ..config import AppConfig
from ..interfaces.notifier import Notifier
from ..models import CycleSummary
from ..notifications import TelegramNotifier
from ..protocols.aave import AaveDataProvider
from ..repository import PostgresPositionRepository
from ..rpc.failover import exponential_backoff
from ..routing import QuoterRouteProvider
from .execution import ExecutionCoordinator
from .orchestrator import BatchOrchestrator
from .position_fetcher import PositionDataFetcher
from .scheduler import CycleScheduler

logger = logging.getLogger(__name__)


class LiquidationBot:
    """Application root: ``async with LiquidationBot(cfg) as bot: ...``.

    The database pool and RPC sessions are opened on enter and released on
    exit; nothing is shared across processes.
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config

        self.client = EvmClient(config.chain, backoff=exponential_backoff())
        self.repository = PostgresPositionRepository(config.database)
        self.data_provider = AaveDataProvider(self.client, config.protocol)
        self.route_provider = QuoterRouteProvider(self.client, config.router)
        self.submitter = LiquidationHelperSubmitter(
            self.client, config.protocol, config.execution
        )

        self.notifiers: list[Notifier] = []
        if config.notifications.telegram.enabled:
            self.notifiers.append(TelegramNotifier(config.notifications.telegram))

        self.coordinator = ExecutionCoordinator(
            self.route_provider,
            self.submitter,
            confirmations=config.execution.confirmations,
            notifiers=self.notifiers,
        )
        self.orchestrator = BatchOrchestrator(
            self.repository,
            self.data_provider,
            PositionDataFetcher(self.data_provider),
            self.coordinator,
            batch_size=config.liquidation.batch_size,
            flat_cost_usd=config.liquidation.flat_cost_usd,
            notifiers=self.notifiers,
        )

    async def __aenter__(self) -> LiquidationBot:
        await self.repository.connect()
        logger.info(
            "Liquidation bot ready [chain: %d, signer: %s, endpoints: %s]",
            self.client.chain_id,
            self.submitter.address,
            ", ".join(e.name for e in self.client.endpoints),
        )
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.repository.close()
        await self.client.close()
        for notifier in self.notifiers:
            close = getattr(notifier, "close", None)
            if close is not None:
                await close()

    async def run_once(self) -> CycleSummary:
        return await self.orchestrator.run_cycle()

    async def run_forever(self, cron_expression: str | None = None) -> None:
        """Run cycles on the cron schedule until cancelled."""
        scheduler = CycleScheduler(
            self.orchestrator.run_cycle,
            cron_expression or self._config.scheduler.cron_expression,
        )
        scheduler.start()
        # First cycle right away rather than at the next cron tick.
        await scheduler.trigger()
        try:
            await scheduler.wait()
        except asyncio.CancelledError:
            logger.info("Shutdown requested")
            raise
        finally:
            await scheduler.stop()
