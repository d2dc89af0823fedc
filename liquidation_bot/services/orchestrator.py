"""One liquidation cycle: candidates -> positions -> ranking -> execution."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from ..errors import (
    AllEndpointsFailedError,
    CycleFatalError,
    NoRouteFoundError,
    RepositoryError,
    SubmissionError,
)
from ..interfaces.notifier import Notifier
from ..interfaces.position_repository import PositionRepository
from ..interfaces.protocol_data_provider import ProtocolDataProvider
from ..models import CandidatePosition, CycleSummary, UserPositionSnapshot
from ..notifications import messages
from ..notifications.dispatch import send_log
from .execution import ExecutionCoordinator
from .position_fetcher import PositionDataFetcher
from .ranker import rank_opportunities

logger = logging.getLogger(__name__)


def is_liquidatable(health_factor: float) -> bool:
    # Negative means "no debt"; 1.0 and above is healthy.
    return 0 <= health_factor < 1


@dataclass
class _Counters:
    candidates: int = 0
    fetched: int = 0
    fetch_failures: int = 0
    filtered: int = 0
    unprofitable: int = 0
    no_route: int = 0
    executed: int = 0
    execution_failures: int = 0

    def summary(self) -> CycleSummary:
        return CycleSummary(**vars(self))


class BatchOrchestrator:
    """Drives a single cycle over all candidates from the repository.

    Positions are fetched concurrently in batches of ``batch_size``;
    executions within a batch run one after another, in candidate order.
    """

    def __init__(
        self,
        repository: PositionRepository,
        data_provider: ProtocolDataProvider,
        fetcher: PositionDataFetcher,
        coordinator: ExecutionCoordinator,
        batch_size: int = 10,
        flat_cost_usd: float = 0.0,
        notifiers: Sequence[Notifier] = (),
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._repository = repository
        self._data_provider = data_provider
        self._fetcher = fetcher
        self._coordinator = coordinator
        self._batch_size = batch_size
        self._flat_cost_usd = flat_cost_usd
        self._notifiers = tuple(notifiers)

    async def _load_candidates(self) -> list[CandidatePosition]:
        try:
            return await self._repository.list_liquidatable_users()
        except RepositoryError as e:
            raise CycleFatalError(f"Cannot load candidates: {e}") from e

    async def _load_reserves(self) -> Any:
        try:
            return await self._data_provider.get_reserves_snapshot()
        except Exception as e:
            raise CycleFatalError(f"Cannot load reserves snapshot: {e}") from e

    async def run_cycle(self) -> CycleSummary:
        """Run one full cycle and return its counters.

        Raises:
            CycleFatalError: candidates or the reserves snapshot are unavailable.
        """
        counters = _Counters()

        candidates = await self._load_candidates()
        counters.candidates = len(candidates)
        logger.info("Cycle started with %d candidate(s)", len(candidates))
        if not candidates:
            return counters.summary()

        reserves = await self._load_reserves()

        for start in range(0, len(candidates), self._batch_size):
            batch = candidates[start:start + self._batch_size]
            results = await asyncio.gather(
                *(self._fetcher.fetch(c.user_address, reserves) for c in batch),
                return_exceptions=True,
            )
            for candidate, result in zip(batch, results):
                await self._process(candidate, result, counters)

        summary = counters.summary()
        logger.info(
            "Cycle finished: %d candidates, %d fetched, %d fetch failures, "
            "%d filtered, %d unprofitable, %d no route, %d executed, %d failed",
            summary.candidates, summary.fetched, summary.fetch_failures,
            summary.filtered, summary.unprofitable, summary.no_route,
            summary.executed, summary.execution_failures,
        )
        if summary.executed or summary.execution_failures:
            await send_log(self._notifiers, messages.cycle_report(summary))
        return summary

    async def _process(
        self,
        candidate: CandidatePosition,
        result: UserPositionSnapshot | BaseException,
        counters: _Counters,
    ) -> None:
        user = candidate.user_address

        if isinstance(result, BaseException):
            # Cancellation of the cycle itself is not a per-user failure.
            if isinstance(result, asyncio.CancelledError):
                raise result
            counters.fetch_failures += 1
            logger.error("Failed to fetch position of %s: %s", user, result)
            return
        counters.fetched += 1

        position = result
        if not is_liquidatable(position.health_factor):
            counters.filtered += 1
            logger.debug("Skipping %s: health factor %.4f", user, position.health_factor)
            return

        opportunities = rank_opportunities(
            position.collateral_assets,
            position.debt_assets,
            self._flat_cost_usd,
            position.health_factor,
        )
        if not opportunities or opportunities[0].profit_usd <= 0:
            counters.unprofitable += 1
            logger.debug("No profitable liquidation for %s", user)
            return

        best = opportunities[0]
        try:
            await self._coordinator.execute(best, user)
        except NoRouteFoundError as e:
            counters.no_route += 1
            logger.warning("Skipping %s: %s", user, e)
        except (SubmissionError, AllEndpointsFailedError) as e:
            counters.execution_failures += 1
            logger.error("Liquidation of %s failed: %s", user, e)
        except Exception:
            counters.execution_failures += 1
            logger.exception("Unexpected error liquidating %s", user)
        else:
            counters.executed += 1
