from netsink.config.loader import load_runtime_config, runtime_config_to_dict
from netsink.config.models import MonitoringConfig, OutputConfig, RuntimeConfig

__all__ = [
    "load_runtime_config",
    "runtime_config_to_dict",
    "MonitoringConfig",
    "OutputConfig",
    "RuntimeConfig",
]
