from .logging import JsonlLogSink, LevelFilterSink, LogSink, StdoutLogSink, build_log_sink

__all__ = [
    "LogSink",
    "StdoutLogSink",
    "JsonlLogSink",
    "LevelFilterSink",
    "build_log_sink",
]
