"""
Slack notification delivery: warning DMs and the removal report.
"""

from seatwatch.notifications.dispatcher import (
    ChatSink,
    DispatcherState,
    NotificationDispatcher,
    WarningBatchResult,
    format_removal_report,
    format_report_line,
    format_service_names,
    format_warning_message,
)

__all__ = [
    "ChatSink",
    "DispatcherState",
    "NotificationDispatcher",
    "WarningBatchResult",
    "format_removal_report",
    "format_report_line",
    "format_service_names",
    "format_warning_message",
]
