"""Exception hierarchy for the liquidation pipeline."""
from __future__ import annotations

from dataclasses import dataclass


class LiquidationBotError(Exception):
    """Base class for all bot errors."""


@dataclass(frozen=True)
class EndpointFailure:
    """One endpoint rejected a call. Recorded, then the next endpoint is tried."""

    endpoint: str
    attempt: int
    cause: BaseException

    def __str__(self) -> str:
        return f"[{self.attempt}] {self.endpoint}: {self.cause!r}"


class AllEndpointsFailedError(LiquidationBotError):
    """Every endpoint failed; ``failures`` keeps each underlying cause."""

    def __init__(self, failures: list[EndpointFailure], description: str = "") -> None:
        self.failures = list(failures)
        self.description = description
        label = f" ({description})" if description else ""
        detail = "; ".join(str(f) for f in self.failures) or "no endpoints configured"
        super().__init__(f"All endpoints failed{label}: {detail}")

    @property
    def causes(self) -> list[BaseException]:
        return [f.cause for f in self.failures]


class RepositoryError(LiquidationBotError):
    """Candidate query against the position store failed."""


class NoRouteFoundError(LiquidationBotError):
    """Route provider returned no path between collateral and debt token."""


class SubmissionError(LiquidationBotError):
    """Transaction was rejected, reverted or never confirmed."""

    def __init__(self, message: str, tx_hash: str | None = None) -> None:
        self.tx_hash = tx_hash
        super().__init__(message)


class CycleFatalError(LiquidationBotError):
    """Shared input of a cycle is unavailable; the rest of the cycle is abandoned."""
