"""Progress and diagnostics sinks for export runs.

One reporter is active per process (``set_reporter``); export stages wrap
themselves in ``task()`` and emit ``... summary:`` status lines through it.
"""

from .base import (
    STAT_KEYS,
    Reporter,
    TaskRecord,
    TaskStatus,
    format_stats,
    get_reporter,
    get_verbosity,
    section,
    set_reporter,
    set_verbosity,
    task,
)
from .jsonl import SUMMARY_PREFIXES, JsonLinesReporter
from .plain import PlainReporter
from .rich_reporter import RichReporter
from .silent import SilentReporter

__all__ = [
    "STAT_KEYS",
    "SUMMARY_PREFIXES",
    "Reporter",
    "TaskRecord",
    "TaskStatus",
    "format_stats",
    "get_reporter",
    "set_reporter",
    "get_verbosity",
    "set_verbosity",
    "section",
    "task",
    "JsonLinesReporter",
    "PlainReporter",
    "RichReporter",
    "SilentReporter",
]
