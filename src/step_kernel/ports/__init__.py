from .result_sink import ResultSink

__all__ = ["ResultSink"]
