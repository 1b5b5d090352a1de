import logging
from collections import deque

from paytrack.core import settings
from paytrack.logger import get_logger
from paytrack.models import ActivityLogEntry, Severity

logger = get_logger(__name__)

_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class ActivityLog:
    """Most recent user-facing events, newest first. Not persisted."""

    def __init__(self, limit: int = settings.ACTIVITY_LOG_LIMIT) -> None:
        self._entries: deque[ActivityLogEntry] = deque(maxlen=limit)

    def add(self, message: str, severity: Severity = Severity.INFO) -> ActivityLogEntry:
        entry = ActivityLogEntry(message=message, severity=severity)
        self._entries.appendleft(entry)
        logger.log(_LOG_LEVELS[severity], "[ACTIVITY] %s", message)
        return entry

    def entries(self) -> list[ActivityLogEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
