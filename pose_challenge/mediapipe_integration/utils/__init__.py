"""
Utils Package for Pose Challenge.

Contains:
- logger: Session event log

Author: Pose Challenge Team
Version: 1.0.0
"""

from .logger import (
    SessionLogger,
    LogLevel,
    LogCategory,
    LogEntry,
)

__all__ = [
    "SessionLogger",
    "LogLevel",
    "LogCategory",
    "LogEntry",
]
