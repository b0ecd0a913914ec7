from __future__ import annotations

import logging
import time

from netsink.io.output.base import OutputSink
from netsink.monitoring.metrics import SinkMetrics


class PeriodicStatsLogger:
    def __init__(
        self,
        sink: OutputSink,
        metrics: SinkMetrics | None = None,
        interval_seconds: float = 5.0,
    ) -> None:
        self._sink = sink
        self._metrics = metrics
        self._interval_seconds = max(0.5, interval_seconds)
        self._next_emit = time.monotonic() + self._interval_seconds
        self._logger = logging.getLogger("netsink.stats")

    def maybe_emit(self, force: bool = False) -> bool:
        now = time.monotonic()
        if not force and now < self._next_emit:
            return False

        stats = self._sink.statistics()
        context = stats.as_dict()
        if self._metrics is not None:
            snapshot = self._metrics.snapshot()
            context.update(
                forwarded=snapshot.forwarded,
                reconnects=snapshot.reconnects,
                messages_per_second=round(snapshot.messages_per_second, 2),
            )
        self._logger.info(
            "stats target=%s",
            self._sink.identifier(),
            extra={"context": context},
        )

        self._next_emit = now + self._interval_seconds
        return True
