from .logging import LOG_LEVELS, LogMessage

__all__ = ["LOG_LEVELS", "LogMessage"]
