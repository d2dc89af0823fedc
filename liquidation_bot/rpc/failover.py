"""Ordered failover over endpoints that offer the same capability."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from ..errors import AllEndpointsFailedError, EndpointFailure

logger = logging.getLogger(__name__)

H = TypeVar("H")
T = TypeVar("T")

Backoff = Callable[[int], float]


@dataclass(frozen=True)
class Endpoint(Generic[H]):
    """A named handle (e.g. an ``AsyncWeb3`` instance) for one provider."""

    name: str
    handle: H


def no_backoff(attempt: int) -> float:
    return 0.0


def exponential_backoff(
    initial_delay: float = 0.5, max_delay: float = 5.0, base: float = 2.0
) -> Backoff:
    """Delay before moving to endpoint ``attempt + 1``."""

    def _delay(attempt: int) -> float:
        return min(initial_delay * (base**attempt), max_delay)

    return _delay


class FailoverClient(Generic[H]):
    """Try endpoints in priority order, return the first success.

    Both reads and writes go through ``call``. A write operation must end at
    the network broadcast so that a transaction accepted by one endpoint is
    never sent again through the next one.
    """

    def __init__(
        self,
        endpoints: Sequence[Endpoint[H]],
        backoff: Backoff | None = None,
    ) -> None:
        self.endpoints = list(endpoints)
        self.backoff = backoff or no_backoff

    async def call(
        self,
        operation: Callable[[H], Awaitable[T]],
        endpoints: Sequence[Endpoint[H]] | None = None,
        description: str = "",
    ) -> T:
        """Run ``operation`` against each endpoint until one succeeds.

        Raises:
            AllEndpointsFailedError: every endpoint failed; ``failures``
                holds the cause reported by each of them.
        """
        targets = list(endpoints) if endpoints is not None else self.endpoints
        failures: list[EndpointFailure] = []

        for attempt, endpoint in enumerate(targets):
            if attempt > 0:
                delay = self.backoff(attempt)
                if delay > 0:
                    await asyncio.sleep(delay)

            logger.debug(
                "Calling %s [endpoint: %s, priority: %d]",
                description or "operation", endpoint.name, attempt,
            )
            try:
                result = await operation(endpoint.handle)
            except Exception as e:
                failures.append(EndpointFailure(endpoint.name, attempt, e))
                logger.warning(
                    "Endpoint %s failed on %s [priority: %d]: %s",
                    endpoint.name, description or "operation", attempt, e,
                )
                continue

            if attempt > 0:
                logger.info(
                    "%s succeeded on fallback endpoint %s",
                    description or "Operation", endpoint.name,
                )
            return result

        raise AllEndpointsFailedError(failures, description)
