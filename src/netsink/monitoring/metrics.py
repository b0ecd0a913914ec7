from __future__ import annotations

import threading
import time
from dataclasses import dataclass


@dataclass
class MetricsSnapshot:
    messages_per_second: float
    forwarded: int
    dropped: int
    reconnects: int
    failures: int


class SinkMetrics:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._start = time.monotonic()
        self._forwarded = 0
        self._dropped = 0
        self._reconnects = 0
        self._failures = 0

        self._prometheus_started = False
        self._prometheus_counters = None

    def enable_prometheus(self, host: str, port: int) -> bool:
        try:
            from prometheus_client import Counter, start_http_server
        except ImportError:
            return False

        if self._prometheus_started:
            return True

        start_http_server(port, addr=host)
        self._prometheus_started = True
        self._prometheus_counters = {
            "forwarded": Counter("netsink_messages_forwarded_total", "Messages written to the remote endpoint"),
            "dropped": Counter("netsink_messages_dropped_total", "Messages dropped while disconnected"),
            "reconnects": Counter("netsink_reconnects_total", "Successful connection (re)opens"),
            "failures": Counter("netsink_fatal_errors_total", "Fatal delivery errors that stopped a forwarder"),
        }
        return True

    def mark_forwarded(self) -> None:
        with self._lock:
            self._forwarded += 1
            if self._prometheus_counters:
                self._prometheus_counters["forwarded"].inc()

    def add_dropped(self, count: int = 1) -> None:
        with self._lock:
            self._dropped += count
            if self._prometheus_counters:
                self._prometheus_counters["dropped"].inc(count)

    def mark_reconnect(self) -> None:
        with self._lock:
            self._reconnects += 1
            if self._prometheus_counters:
                self._prometheus_counters["reconnects"].inc()

    def mark_failure(self) -> None:
        with self._lock:
            self._failures += 1
            if self._prometheus_counters:
                self._prometheus_counters["failures"].inc()

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            elapsed = max(1e-6, time.monotonic() - self._start)
            return MetricsSnapshot(
                messages_per_second=self._forwarded / elapsed,
                forwarded=self._forwarded,
                dropped=self._dropped,
                reconnects=self._reconnects,
                failures=self._failures,
            )
