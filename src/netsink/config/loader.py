from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

from dynaconf import Dynaconf

from netsink.config.defaults import DEFAULT_CONFIG
from netsink.config.models import MonitoringConfig, OutputConfig, RuntimeConfig

_CONFIG_NAMES = (
    "netsink.toml",
    "netsink.yaml",
    "netsink.yml",
    "netsink.json",
    "settings.toml",
    "settings.yaml",
    "settings.yml",
    "settings.json",
)
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off", ""}


def _canonical_keys(obj: Any) -> Any:
    # Dynaconf upper-cases top-level keys; CLI and env spellings may use dashes.
    if isinstance(obj, dict):
        return {
            str(key).lower().replace("-", "_"): _canonical_keys(value)
            for key, value in obj.items()
        }
    return obj


def _overlay(base: dict[str, Any], patch: dict[str, Any]) -> None:
    """Apply ``patch`` onto the known ``output``/``monitoring`` sections of ``base``."""
    for section, values in patch.items():
        target = base.get(section)
        if not isinstance(target, dict) or not isinstance(values, dict):
            continue
        for key, value in values.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                target[key].update(value)
            else:
                target[key] = value


def _load_with_dynaconf(config_paths: list[Path]) -> dict[str, Any]:
    settings = Dynaconf(
        envvar_prefix="NETSINK",
        settings_files=[str(path) for path in config_paths],
        merge_enabled=True,
        environments=False,
        load_dotenv=True,
    )
    return _canonical_keys(settings.as_dict())


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    return default


def _positive_float(value: Any, default: float, minimum: float) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    return max(minimum, parsed)


def _normalize(data: dict[str, Any]) -> RuntimeConfig:
    output_data = data.get("output", {})
    monitoring_data = data.get("monitoring", {})

    target = output_data.get("target")
    log_level = str(monitoring_data.get("log_level", "INFO")).upper()

    return RuntimeConfig(
        output=OutputConfig(
            target=str(target) if target else None,
            dial_timeout_seconds=_positive_float(
                output_data.get("dial_timeout_seconds", 5.0), 5.0, 0.1
            ),
            write_timeout_seconds=_positive_float(
                output_data.get("write_timeout_seconds", 0.5), 0.5, 0.01
            ),
            reconnect_delay_seconds=_positive_float(
                output_data.get("reconnect_delay_seconds", 30.0), 30.0, 0.0
            ),
            refresh_interval_seconds=_positive_float(
                output_data.get("refresh_interval_seconds", 1.0), 1.0, 0.05
            ),
            queue_size=max(0, int(output_data.get("queue_size", 0))),
        ),
        monitoring=MonitoringConfig(
            json_logs=_as_bool(monitoring_data.get("json_logs"), False),
            log_level=log_level if log_level in _LOG_LEVELS else "INFO",
            stats_interval_seconds=_positive_float(
                monitoring_data.get("stats_interval_seconds", 60.0), 60.0, 0.5
            ),
            prometheus_enabled=_as_bool(monitoring_data.get("prometheus_enabled"), False),
            prometheus_host=str(monitoring_data.get("prometheus_host", "0.0.0.0")),
            prometheus_port=int(monitoring_data.get("prometheus_port", 9109)),
        ),
    )


def _default_config_copy() -> dict[str, Any]:
    return json.loads(json.dumps(DEFAULT_CONFIG))


def load_runtime_config(
    work_dir: Path,
    config_path: str | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> RuntimeConfig:
    """Defaults, then config files and NETSINK_* env vars, then CLI overrides."""
    config_paths: list[Path] = []
    if config_path:
        explicit = Path(config_path)
        if not explicit.exists():
            raise FileNotFoundError(f"Config file not found: {explicit}")
        config_paths.append(explicit)
    else:
        for name in _CONFIG_NAMES:
            candidate = work_dir / name
            if candidate.exists():
                config_paths.append(candidate)

    merged = _default_config_copy()
    _overlay(merged, _load_with_dynaconf(config_paths))

    if cli_overrides:
        _overlay(merged, _canonical_keys(cli_overrides))

    return _normalize(merged)


def runtime_config_to_dict(config: RuntimeConfig) -> dict[str, Any]:
    return asdict(config)
