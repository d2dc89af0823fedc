"""Notifier protocol: operator notification channel."""
from typing import Protocol


class Notifier(Protocol):
    """Abstract interface for telling the operator about liquidations."""

    async def send_alert(self, message: str, subject: str = "") -> bool: ...

    async def send_log(self, message: str, silent: bool = True) -> bool: ...
