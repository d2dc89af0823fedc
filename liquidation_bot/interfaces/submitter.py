"""Liquidation submitter protocol: signs, broadcasts and confirms."""
from typing import Any, Protocol

from ..models import ExecutionParams, SubmittedTransaction


class LiquidationSubmitter(Protocol):
    """Abstract interface for sending liquidation transactions."""

    async def submit_liquidation(self, params: ExecutionParams) -> SubmittedTransaction: ...

    async def wait_for_confirmation(
        self, submitted: SubmittedTransaction, confirmations: int
    ) -> Any: ...
