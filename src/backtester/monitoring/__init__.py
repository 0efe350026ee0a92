"""Monitoring exports."""

from backtester.monitoring.audit import AuditLog
from backtester.monitoring.notifier import LogNotifier, MemoryNotifier, Notifier

__all__ = [
    "AuditLog",
    "LogNotifier",
    "MemoryNotifier",
    "Notifier",
]
