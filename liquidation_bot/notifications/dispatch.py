"""Fan a message out to every configured notifier."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from ..interfaces.notifier import Notifier

logger = logging.getLogger(__name__)


async def send_alert(notifiers: Sequence[Notifier], message: str, subject: str = "") -> None:
    # A broken notification channel never fails a liquidation.
    for notifier in notifiers:
        try:
            await notifier.send_alert(message, subject=subject)
        except Exception as e:
            logger.error("Notifier send_alert failed: %s", e)


async def send_log(notifiers: Sequence[Notifier], message: str, silent: bool = True) -> None:
    for notifier in notifiers:
        try:
            await notifier.send_log(message, silent=silent)
        except Exception as e:
            logger.error("Notifier send_log failed: %s", e)
