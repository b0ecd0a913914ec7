from __future__ import annotations

import socket
import unittest

from netsink.errors import DialError
from netsink.io.output.net import NetOutputSink


def _unused_tcp_port() -> int:
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    return port


class LoopbackTests(unittest.TestCase):
    def test_unreachable_tcp_port_reports_dial_error(self) -> None:
        port = _unused_tcp_port()
        sink = NetOutputSink(dial_timeout_seconds=1.0)

        with self.assertRaises(DialError) as ctx:
            sink.initialize(f"tcp:127.0.0.1:{port}")

        self.assertIn(f"tcp:127.0.0.1:{port}", str(ctx.exception))
        self.assertFalse(sink.statistics().connected)

    def test_udp_datagram_has_no_terminator(self) -> None:
        server = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.addCleanup(server.close)
        server.bind(("127.0.0.1", 0))
        server.settimeout(2.0)
        port = server.getsockname()[1]
        sink = NetOutputSink()
        self.addCleanup(sink.close)

        sink.initialize(f"udp:127.0.0.1:{port}")
        sink.deliver("hello")
        data, _ = server.recvfrom(1024)

        self.assertEqual(data, b"hello")

    def test_tcp_stream_gets_crlf_terminator(self) -> None:
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.addCleanup(server.close)
        server.bind(("127.0.0.1", 0))
        server.listen(1)
        server.settimeout(2.0)
        port = server.getsockname()[1]
        sink = NetOutputSink()
        self.addCleanup(sink.close)

        sink.initialize(f"tcp:127.0.0.1:{port}")
        conn, _ = server.accept()
        self.addCleanup(conn.close)
        conn.settimeout(2.0)
        sink.deliver("hello")
        sink.deliver("world")

        received = b""
        while len(received) < 14:
            chunk = conn.recv(1024)
            if not chunk:
                break
            received += chunk

        self.assertEqual(received, b"hello\r\nworld\r\n")


if __name__ == "__main__":
    unittest.main()
