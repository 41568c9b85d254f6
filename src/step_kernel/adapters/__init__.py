from .result_sinks import JsonlResultSink, StdoutResultSink, build_result_sink, result_to_dict

__all__ = ["JsonlResultSink", "StdoutResultSink", "build_result_sink", "result_to_dict"]
