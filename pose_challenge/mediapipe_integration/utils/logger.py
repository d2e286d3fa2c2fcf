"""
Logger Module for Pose Challenge.

Session event log. Challenge events (reference loaded, match gained/lost,
points awarded, operator actions) are kept as structured entries for the
lifetime of one session, mirrored to the standard logging module under a
[CATEGORY] tag and written out as JSON when the session ends.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional
import json
import logging
import time

logger = logging.getLogger(__name__)


class LogLevel(Enum):
    """Severity of a session event, valued with the stdlib level number."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR

    @property
    def label(self) -> str:
        return self.name.lower()


class LogCategory(Enum):
    """Which part of the challenge an event belongs to."""
    POSE = "pose"
    MATCH = "match"
    TIMER = "timer"
    SCORE = "score"
    SYSTEM = "system"


@dataclass(frozen=True)
class LogEntry:
    timestamp: float
    level: LogLevel
    category: LogCategory
    message: str
    data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'level': self.level.label,
            'category': self.category.value,
            'message': self.message,
            'data': self.data,
        }


@dataclass
class SessionLogger:
    """
    Event log of one challenge session.

    Only the newest max_entries events are kept in memory; older ones are
    still visible in the standard log.

    Example:
        >>> session_log = SessionLogger("5f1c2a9e", "data/logs")
        >>> session_log.info(LogCategory.SCORE, "Challenge Complete! +100 Points", {"level": 1})
        >>> session_log.save_session_log()
        PosixPath('data/logs/session_5f1c2a9e_1718000000.json')
    """

    session_id: str
    log_dir: str = "data/logs"
    max_entries: int = 5000
    _entries: Deque[LogEntry] = field(init=False, repr=False)

    def __post_init__(self):
        self._entries = deque(maxlen=self.max_entries)

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def log(self, level: LogLevel, category: LogCategory, message: str,
            data: Optional[Dict[str, Any]] = None) -> LogEntry:
        """Record one event and mirror it to the module logger."""
        entry = LogEntry(time.time(), level, category, message, data)
        self._entries.append(entry)

        suffix = f" {data}" if data else ""
        logger.log(level.value, f"[{category.name}] {message}{suffix}")
        return entry

    def debug(self, category: LogCategory, message: str, data: Optional[Dict[str, Any]] = None) -> LogEntry:
        return self.log(LogLevel.DEBUG, category, message, data)

    def info(self, category: LogCategory, message: str, data: Optional[Dict[str, Any]] = None) -> LogEntry:
        return self.log(LogLevel.INFO, category, message, data)

    def warning(self, category: LogCategory, message: str, data: Optional[Dict[str, Any]] = None) -> LogEntry:
        return self.log(LogLevel.WARNING, category, message, data)

    def error(self, category: LogCategory, message: str, data: Optional[Dict[str, Any]] = None) -> LogEntry:
        return self.log(LogLevel.ERROR, category, message, data)

    def get_entries(self, category: Optional[LogCategory] = None,
                    min_level: LogLevel = LogLevel.DEBUG) -> List[LogEntry]:
        """Entries in insertion order, optionally narrowed by category and severity."""
        return [
            entry for entry in self._entries
            if (category is None or entry.category == category)
            and entry.level.value >= min_level.value
        ]

    def save_session_log(self) -> Path:
        """
        Write every retained entry to session_<id>_<unix time>.json.

        Returns:
            Path of the written file.
        """
        target_dir = Path(self.log_dir)
        target_dir.mkdir(parents=True, exist_ok=True)
        saved_at = time.time()
        log_file = target_dir / f"session_{self.session_id}_{int(saved_at)}.json"

        payload = {
            'session_id': self.session_id,
            'saved_at': saved_at,
            'entry_count': len(self._entries),
            'entries': [entry.to_dict() for entry in self._entries],
        }
        log_file.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding='utf-8')

        logger.info(f"[SESSION] {len(self._entries)} events saved to {log_file}")
        return log_file
