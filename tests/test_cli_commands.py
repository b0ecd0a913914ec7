from __future__ import annotations

import contextlib
import io
import json
import logging
import socket
import tempfile
import unittest
from pathlib import Path

from netsink.cli import _build_parser, main
from netsink.commands.forward import build_forward_overrides, run_forward


def _udp_server(test: unittest.TestCase) -> tuple[socket.socket, int]:
    server = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    test.addCleanup(server.close)
    server.bind(("127.0.0.1", 0))
    server.settimeout(2.0)
    return server, server.getsockname()[1]


class CliCommandTests(unittest.TestCase):
    def tearDown(self) -> None:
        logging.getLogger().handlers.clear()

    def test_forward_overrides_skip_unset_flags(self) -> None:
        args = _build_parser().parse_args(["forward", "--target", "udp:127.0.0.1:9000", "--queue-size", "8"])

        overrides = build_forward_overrides(args)

        self.assertEqual(
            overrides,
            {"output": {"target": "udp:127.0.0.1:9000", "queue_size": 8}},
        )

    def test_forward_sends_stdin_lines_until_eof(self) -> None:
        server, port = _udp_server(self)
        args = _build_parser().parse_args(
            ["forward", "--target", f"udp:127.0.0.1:{port}", "--quiet"]
        )

        with tempfile.TemporaryDirectory() as tmpdir:
            rc = run_forward(args, Path(tmpdir), stdin=io.StringIO("one\ntwo\r\n"))

        self.assertEqual(rc, 0)
        self.assertEqual(server.recvfrom(1024)[0], b"one")
        self.assertEqual(server.recvfrom(1024)[0], b"two")

    def test_forward_ends_cleanly_on_undecodable_stdin(self) -> None:
        _, port = _udp_server(self)
        args = _build_parser().parse_args(
            ["forward", "--target", f"udp:127.0.0.1:{port}", "--quiet"]
        )
        stdin = io.TextIOWrapper(io.BytesIO(b"ok\n\xff\xfe\n"), encoding="utf-8")

        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertLogs("netsink.forward", level="ERROR") as captured:
                rc = run_forward(args, Path(tmpdir), stdin=stdin)

        self.assertEqual(rc, 0)
        self.assertIn("stdin read failed", captured.output[0])

    def test_forward_without_target_fails(self) -> None:
        args = _build_parser().parse_args(["forward", "--quiet"])

        with tempfile.TemporaryDirectory() as tmpdir:
            rc = run_forward(args, Path(tmpdir), stdin=io.StringIO(""))

        self.assertEqual(rc, 2)

    def test_probe_reports_statistics_as_json(self) -> None:
        _, port = _udp_server(self)
        stdout = io.StringIO()

        with contextlib.redirect_stdout(stdout):
            rc = main(["probe", "--target", f"udp:127.0.0.1:{port}", "--json"])

        payload = json.loads(stdout.getvalue())
        self.assertEqual(rc, 0)
        self.assertTrue(payload["connected"])
        self.assertEqual(payload["connection_protocol"], "udp")
        self.assertEqual(payload["remote_address"], f"127.0.0.1:{port}")
        self.assertIsNone(payload["error"])

    def test_probe_reports_malformed_target(self) -> None:
        stdout = io.StringIO()

        with contextlib.redirect_stdout(stdout):
            rc = main(["probe", "--target", "no-colon-here"])

        self.assertEqual(rc, 2)
        self.assertIn("unreachable", stdout.getvalue())
        self.assertIn("expected protocol:address", stdout.getvalue())


if __name__ == "__main__":
    unittest.main()
