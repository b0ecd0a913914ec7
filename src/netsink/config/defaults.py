from __future__ import annotations


DEFAULT_CONFIG: dict = {
    "output": {
        "target": None,
        "dial_timeout_seconds": 5.0,
        "write_timeout_seconds": 0.5,
        "reconnect_delay_seconds": 30.0,
        "refresh_interval_seconds": 1.0,
        "queue_size": 0,
    },
    "monitoring": {
        "json_logs": False,
        "log_level": "INFO",
        "stats_interval_seconds": 60.0,
        "prometheus_enabled": False,
        "prometheus_host": "0.0.0.0",
        "prometheus_port": 9109,
    },
}
