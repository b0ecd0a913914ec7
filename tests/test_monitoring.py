from __future__ import annotations

import io
import json
import logging
import unittest

from fakes import FakeDialer, FakeSocket

from netsink.io.output.net import NetOutputSink
from netsink.monitoring import PeriodicStatsLogger, SinkMetrics
from netsink.monitoring.logging import SinkJsonFormatter, SinkTextFormatter, configure_logging


class SinkMetricsTests(unittest.TestCase):
    def test_counters_accumulate(self) -> None:
        metrics = SinkMetrics()
        metrics.mark_forwarded()
        metrics.mark_forwarded()
        metrics.add_dropped(3)
        metrics.mark_reconnect()
        metrics.mark_failure()

        snapshot = metrics.snapshot()

        self.assertEqual(snapshot.forwarded, 2)
        self.assertEqual(snapshot.dropped, 3)
        self.assertEqual(snapshot.reconnects, 1)
        self.assertEqual(snapshot.failures, 1)
        self.assertGreater(snapshot.messages_per_second, 0.0)


class PeriodicStatsLoggerTests(unittest.TestCase):
    def test_emits_only_when_due_unless_forced(self) -> None:
        sink = NetOutputSink(dialer=FakeDialer(FakeSocket()))
        sink.initialize("tcp:logs.example.com:514")
        stats_logger = PeriodicStatsLogger(sink=sink, metrics=SinkMetrics(), interval_seconds=60.0)

        with self.assertLogs("netsink.stats", level="INFO") as captured:
            self.assertFalse(stats_logger.maybe_emit())
            self.assertTrue(stats_logger.maybe_emit(force=True))

        self.assertEqual(len(captured.records), 1)
        record = captured.records[0]
        self.assertIn("target=tcp:logs.example.com:514", record.getMessage())
        self.assertEqual(record.context["remote_address"], "logs.example.com:514")
        self.assertEqual(record.context["forwarded"], 0)


class LoggingTests(unittest.TestCase):
    def tearDown(self) -> None:
        logging.getLogger().handlers.clear()

    def test_json_formatter_merges_context(self) -> None:
        record = logging.LogRecord("netsink.test", logging.INFO, __file__, 1, "hello %s", ("x",), None)
        record.context = {"dropped_event_count": 4}

        payload = json.loads(SinkJsonFormatter().format(record))

        self.assertEqual(payload["message"], "hello x")
        self.assertEqual(payload["level"], "INFO")
        self.assertEqual(payload["dropped_event_count"], 4)

    def test_text_formatter_appends_sorted_context(self) -> None:
        record = logging.LogRecord("netsink.test", logging.WARNING, __file__, 1, "stats", (), None)
        record.context = {"state": "connected", "dropped_event_count": 0}

        line = SinkTextFormatter().format(record)

        self.assertIn("WARNING netsink.test", line)
        self.assertTrue(line.endswith("stats dropped_event_count=0 state=connected"))

    def test_configure_logging_installs_single_handler(self) -> None:
        stream = io.StringIO()
        configure_logging(level="debug", json_logs=True, stream=stream)
        configure_logging(level="debug", json_logs=True, stream=stream)

        logging.getLogger("netsink.test").debug("ping")

        self.assertEqual(len(logging.getLogger().handlers), 1)
        self.assertEqual(json.loads(stream.getvalue())["message"], "ping")


if __name__ == "__main__":
    unittest.main()
