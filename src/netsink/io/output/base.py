from __future__ import annotations

import queue
from abc import ABC, abstractmethod

from netsink.types import StatisticsSnapshot


class OutputSink(ABC):
    @abstractmethod
    def initialize(self, descriptor: str) -> None:
        """Open the connection described by ``protocol:address``."""

    @abstractmethod
    def run(
        self,
        messages: queue.Queue[str | None],
        errors: queue.Queue[BaseException],
    ) -> None:
        """Start forwarding ``messages``. Fatal errors are put on ``errors``."""

    @abstractmethod
    def statistics(self) -> StatisticsSnapshot:
        """Immutable snapshot of connection state."""

    @abstractmethod
    def identifier(self) -> str:
        """Stable sink key for registries and logging."""

    @abstractmethod
    def close(self) -> None:
        """Stop forwarding and release the connection."""
