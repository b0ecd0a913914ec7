from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from netsink.commands.forward import build_sink
from netsink.config import load_runtime_config
from netsink.errors import SinkError
from netsink.monitoring import configure_logging


def run_probe(args: Any, work_dir: Path) -> int:
    overrides: dict[str, Any] = {"output": {"target": args.target}} if args.target else {}
    if args.dial_timeout is not None:
        overrides.setdefault("output", {})["dial_timeout_seconds"] = args.dial_timeout
    config = load_runtime_config(
        work_dir=work_dir,
        config_path=args.config,
        cli_overrides=overrides,
    )
    configure_logging(level="WARNING", json_logs=config.monitoring.json_logs)

    if not config.output.target:
        print("error: missing target. Provide --target or output.target in config.")
        return 2

    sink = build_sink(config)
    error: str | None = None
    try:
        sink.initialize(config.output.target)
    except SinkError as exc:
        error = str(exc)

    payload = sink.statistics().as_dict()
    payload["target"] = config.output.target
    payload["error"] = error
    sink.close()

    if args.json:
        print(json.dumps(payload, ensure_ascii=True))
    else:
        status = "ok" if payload["connected"] else "unreachable"
        print(f"[{status}] target={payload['target']} protocol={payload['connection_protocol']}")
        if error:
            print(f"  error: {error}")

    return 0 if payload["connected"] else 2
