from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class OutputConfig:
    target: str | None = None
    dial_timeout_seconds: float = 5.0
    write_timeout_seconds: float = 0.5
    reconnect_delay_seconds: float = 30.0
    refresh_interval_seconds: float = 1.0
    queue_size: int = 0


@dataclass
class MonitoringConfig:
    json_logs: bool = False
    log_level: str = "INFO"
    stats_interval_seconds: float = 60.0
    prometheus_enabled: bool = False
    prometheus_host: str = "0.0.0.0"
    prometheus_port: int = 9109


@dataclass
class RuntimeConfig:
    output: OutputConfig = field(default_factory=OutputConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    def as_log_context(self) -> dict[str, Any]:
        return {
            "target": self.output.target,
            "write_timeout_seconds": self.output.write_timeout_seconds,
            "reconnect_delay_seconds": self.output.reconnect_delay_seconds,
            "queue_size": self.output.queue_size,
            "json_logs": self.monitoring.json_logs,
            "prometheus_enabled": self.monitoring.prometheus_enabled,
        }
