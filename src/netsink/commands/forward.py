from __future__ import annotations

import logging
import queue
import signal
import sys
import threading
from pathlib import Path
from typing import Any, TextIO

from netsink.config import RuntimeConfig, load_runtime_config
from netsink.errors import SinkError
from netsink.io.output import NetOutputSink
from netsink.monitoring import PeriodicStatsLogger, SinkMetrics, configure_logging


def _clean_overrides(payload: dict[str, Any]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for key, value in payload.items():
        if isinstance(value, dict):
            nested = _clean_overrides(value)
            if nested:
                cleaned[key] = nested
            continue
        if value is not None:
            cleaned[key] = value
    return cleaned


def build_forward_overrides(args: Any) -> dict[str, Any]:
    overrides = {
        "output": {
            "target": args.target,
            "dial_timeout_seconds": args.dial_timeout,
            "write_timeout_seconds": args.write_timeout,
            "reconnect_delay_seconds": args.reconnect_delay,
            "queue_size": args.queue_size,
        },
        "monitoring": {
            "json_logs": (True if args.json_logs else None),
            "log_level": args.log_level,
            "stats_interval_seconds": args.stats_interval,
            "prometheus_enabled": (True if args.prometheus else None),
            "prometheus_host": args.prometheus_host,
            "prometheus_port": args.prometheus_port,
        },
    }
    return _clean_overrides(overrides)


def build_sink(config: RuntimeConfig, metrics: SinkMetrics | None = None) -> NetOutputSink:
    return NetOutputSink(
        dial_timeout_seconds=config.output.dial_timeout_seconds,
        write_timeout_seconds=config.output.write_timeout_seconds,
        reconnect_delay_seconds=config.output.reconnect_delay_seconds,
        refresh_interval_seconds=config.output.refresh_interval_seconds,
        metrics=metrics,
    )


def _install_reload_handler(sink: NetOutputSink) -> Any:
    if not hasattr(signal, "SIGHUP"):
        return None
    if threading.current_thread() is not threading.main_thread():
        return None

    def _on_hup(signum: int, frame: Any) -> None:
        sink.request_reload()

    return signal.signal(signal.SIGHUP, _on_hup)


def _read_lines(stream: TextIO, messages: queue.Queue[str | None]) -> None:
    try:
        for line in stream:
            messages.put(line.rstrip("\r\n"))
    except (OSError, ValueError) as exc:
        logging.getLogger("netsink.forward").error("stdin read failed: %s; ending stream", exc)
    finally:
        messages.put(None)


def run_forward(args: Any, work_dir: Path, stdin: TextIO | None = None) -> int:
    config = load_runtime_config(
        work_dir=work_dir,
        config_path=args.config,
        cli_overrides=build_forward_overrides(args),
    )
    if args.quiet:
        config.monitoring.log_level = "WARNING"

    configure_logging(
        level=config.monitoring.log_level,
        json_logs=config.monitoring.json_logs,
    )
    logger = logging.getLogger("netsink.forward")

    if not config.output.target:
        logger.error("missing target. Provide --target or output.target in config.")
        return 2
    logger.info("starting forward with config=%s", config.as_log_context())

    metrics = SinkMetrics()
    if config.monitoring.prometheus_enabled:
        if metrics.enable_prometheus(
            config.monitoring.prometheus_host,
            config.monitoring.prometheus_port,
        ):
            logger.info(
                "prometheus endpoint enabled at %s:%d",
                config.monitoring.prometheus_host,
                config.monitoring.prometheus_port,
            )
        else:
            logger.warning("prometheus requested but prometheus_client is not installed")

    sink = build_sink(config, metrics)
    try:
        sink.initialize(config.output.target)
    except SinkError as exc:
        logger.error("initialization failed: %s", exc)
        return 2

    messages: queue.Queue[str | None] = queue.Queue(maxsize=config.output.queue_size)
    errors: queue.Queue[BaseException] = queue.Queue()
    sink.run(messages, errors)

    reader = threading.Thread(
        target=_read_lines,
        args=(stdin if stdin is not None else sys.stdin, messages),
        name="netsink-stdin",
        daemon=True,
    )
    reader.start()

    previous_hup = _install_reload_handler(sink)
    stats_logger = PeriodicStatsLogger(
        sink=sink,
        metrics=metrics,
        interval_seconds=config.monitoring.stats_interval_seconds,
    )
    try:
        while sink.running:
            sink.wait(timeout=0.5)
            stats_logger.maybe_emit()
    except KeyboardInterrupt:
        logger.info("interrupted by user")
    finally:
        stats_logger.maybe_emit(force=True)
        sink.close()
        if previous_hup is not None:
            signal.signal(signal.SIGHUP, previous_hup)

    try:
        error = errors.get_nowait()
    except queue.Empty:
        return 0
    logger.error("forwarder stopped: %s", error)
    return 1
