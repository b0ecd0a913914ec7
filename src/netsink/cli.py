from __future__ import annotations

import argparse
from pathlib import Path


def _add_target_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to TOML/YAML/JSON config file")
    parser.add_argument(
        "--target",
        help="Connection descriptor protocol:address, e.g. tcp:logs.example.com:514",
    )
    parser.add_argument("--dial-timeout", type=float, help="Connect timeout seconds")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netsink",
        description="Forward line-oriented events to a remote TCP/UDP/unix endpoint",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    forward = subparsers.add_parser("forward", help="Forward stdin lines to the target")
    _add_target_args(forward)
    forward.add_argument("--write-timeout", type=float, help="Per-write deadline seconds")
    forward.add_argument(
        "--reconnect-delay",
        type=float,
        help="Seconds to wait before reconnecting after a failure",
    )
    forward.add_argument(
        "--queue-size",
        type=int,
        help="Bounded message queue size (0 = unbounded)",
    )
    forward.add_argument("--json-logs", action="store_true", help="Emit structured JSON logs")
    forward.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Runtime log level")
    forward.add_argument("--quiet", action="store_true", help="Suppress non-warning logs")
    forward.add_argument("--stats-interval", type=float, help="Seconds between statistics log lines")
    forward.add_argument("--prometheus", action="store_true", help="Enable Prometheus metrics endpoint")
    forward.add_argument("--prometheus-host", help="Prometheus bind host")
    forward.add_argument("--prometheus-port", type=int, help="Prometheus bind port")

    probe = subparsers.add_parser("probe", help="Connect once and report sink statistics")
    _add_target_args(probe)
    probe.add_argument("--json", action="store_true", help="Emit JSON report")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    work_dir = Path.cwd()

    if args.command == "forward":
        from netsink.commands.forward import run_forward

        return run_forward(args, work_dir)
    if args.command == "probe":
        from netsink.commands.probe import run_probe

        return run_probe(args, work_dir)

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
