from .loader import ConfigError, load_config, load_yaml_config, parse_config
from .models import LoggingSection, ResultsSection, RunConfig, RunSection

__all__ = [
    "ConfigError",
    "load_config",
    "load_yaml_config",
    "parse_config",
    "RunConfig",
    "RunSection",
    "LoggingSection",
    "ResultsSection",
]
