"""Operator notifications."""
from .dispatch import send_alert, send_log
from .telegram import TelegramNotifier

__all__ = ["TelegramNotifier", "send_alert", "send_log"]
