from .adapters import JsonlLogSink, LevelFilterSink, LogSink, StdoutLogSink, build_log_sink
from .domain import LOG_LEVELS, LogMessage

__all__ = [
    "LOG_LEVELS",
    "LogMessage",
    "LogSink",
    "StdoutLogSink",
    "JsonlLogSink",
    "LevelFilterSink",
    "build_log_sink",
]
