from __future__ import annotations

import logging
import queue
import socket
import threading
import time
from datetime import datetime, timezone
from typing import Callable

from netsink.errors import DeliveryError, DialError, SinkError, SinkNotInitializedError
from netsink.io.output.base import OutputSink
from netsink.io.output.descriptor import Descriptor, parse_descriptor
from netsink.io.output.dialer import dial
from netsink.monitoring.metrics import SinkMetrics
from netsink.types import ConnectionState, StatisticsSnapshot

DEFAULT_DIAL_TIMEOUT_SECONDS = 5.0
DEFAULT_WRITE_TIMEOUT_SECONDS = 0.5
DEFAULT_RECONNECT_DELAY_SECONDS = 30.0
DEFAULT_REFRESH_INTERVAL_SECONDS = 1.0
LINE_TERMINATOR = "\r\n"

Dialer = Callable[[str, str, float], socket.socket]


class NetOutputSink(OutputSink):
    """Forwards text messages to one TCP/UDP/unix endpoint.

    A single forwarder thread started by :meth:`run` owns the socket and is the
    only writer. While disconnected, messages are counted and dropped so the
    producer never blocks; a periodic refresh reopens the connection once the
    scheduled reconnect time has passed. A write failure gets exactly one
    reconnect-and-retry; anything that survives it is reported once on the
    error queue and stops the forwarder.
    """

    def __init__(
        self,
        *,
        dialer: Dialer = dial,
        dial_timeout_seconds: float = DEFAULT_DIAL_TIMEOUT_SECONDS,
        write_timeout_seconds: float = DEFAULT_WRITE_TIMEOUT_SECONDS,
        reconnect_delay_seconds: float = DEFAULT_RECONNECT_DELAY_SECONDS,
        refresh_interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS,
        metrics: SinkMetrics | None = None,
    ) -> None:
        self._dialer = dialer
        self._dial_timeout = dial_timeout_seconds
        self._write_timeout = write_timeout_seconds
        self._reconnect_delay = reconnect_delay_seconds
        self._refresh_interval = refresh_interval_seconds
        self._metrics = metrics
        self._logger = logging.getLogger("netsink.output.net")

        # Guards everything below except the drop counter.
        self._lock = threading.Lock()
        self._descriptor: Descriptor | None = None
        self._socket: socket.socket | None = None
        self._state = ConnectionState.DISCONNECTED_UNSCHEDULED
        self._append_newline = False
        self._connect_time: datetime | None = None
        self._reconnect_time = 0.0

        self._drop_lock = threading.Lock()
        self._dropped = 0
        self._drop_warned = False

        self._reload_requested = threading.Event()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def __str__(self) -> str:
        return self.identifier()

    @property
    def connected(self) -> bool:
        with self._lock:
            return self._state is ConnectionState.CONNECTED

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    @property
    def reconnect_time(self) -> float:
        """Monotonic deadline for the next scheduled reconnect."""
        with self._lock:
            return self._reconnect_time

    @property
    def append_newline(self) -> bool:
        with self._lock:
            return self._append_newline

    @property
    def dropped_count(self) -> int:
        with self._drop_lock:
            return self._dropped

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def _close_socket_locked(self) -> bool:
        if self._socket is None:
            return False
        try:
            self._socket.close()
        except OSError:
            pass
        self._socket = None
        return True

    def initialize(self, descriptor: str) -> None:
        parsed = parse_descriptor(descriptor)
        with self._lock:
            closed_live = self._close_socket_locked()
            self._descriptor = parsed
            self._append_newline = parsed.append_newline
            try:
                sock = self._dialer(parsed.protocol, parsed.address, self._dial_timeout)
            except SinkError:
                if closed_live:
                    self._state = ConnectionState.DISCONNECTED_UNSCHEDULED
                raise
            # getaddrinfo raises UnicodeError for hostnames IDNA cannot encode.
            except (OSError, UnicodeError) as exc:
                if closed_live:
                    self._state = ConnectionState.DISCONNECTED_UNSCHEDULED
                raise DialError(descriptor, exc) from exc

            # Per-operation timeout: every send gets its own write deadline.
            sock.settimeout(self._write_timeout)
            self._socket = sock
            self._connect_time = datetime.now(timezone.utc)
            self._state = ConnectionState.CONNECTED

        with self._drop_lock:
            self._drop_warned = False
        if self._metrics is not None:
            self._metrics.mark_reconnect()
        self._logger.info(
            "connected target=%s protocol=%s address=%s",
            descriptor,
            parsed.protocol,
            parsed.address,
        )

    def close_and_schedule_reconnection(self) -> None:
        with self._lock:
            self._close_socket_locked()
            self._reconnect_time = time.monotonic() + self._reconnect_delay
            self._state = ConnectionState.DISCONNECTED_SCHEDULED
            target = self._descriptor

        self._logger.warning(
            "connection closed target=%s; reconnect in %.1fs",
            target,
            self._reconnect_delay,
        )

    def identifier(self) -> str:
        with self._lock:
            return self._descriptor.raw if self._descriptor else ""

    def statistics(self) -> StatisticsSnapshot:
        with self._lock:
            return StatisticsSnapshot(
                last_open_time=self._connect_time,
                connection_protocol=self._descriptor.protocol if self._descriptor else "",
                remote_address=self._descriptor.address if self._descriptor else "",
                dropped_event_count=self.dropped_count,
                connected=self._state is ConnectionState.CONNECTED,
                state=self._state,
            )

    def _record_drop(self) -> None:
        with self._drop_lock:
            self._dropped += 1
            warn = not self._drop_warned
            self._drop_warned = True
        if self._metrics is not None:
            self._metrics.add_dropped()
        if warn:
            self._logger.warning(
                "not connected target=%s; dropping messages until reconnect",
                self.identifier(),
            )

    def _mark_forwarded(self) -> None:
        if self._metrics is not None:
            self._metrics.mark_forwarded()

    def deliver(self, message: str) -> None:
        with self._lock:
            sock = self._socket
            descriptor = self._descriptor
            if self._append_newline:
                message = message + LINE_TERMINATOR

        if sock is None or descriptor is None:
            self._record_drop()
            return

        payload = message.encode("utf-8", errors="replace")
        try:
            sock.sendall(payload)
            self._mark_forwarded()
            return
        except OSError as exc:
            self._logger.warning("write failed target=%s error=%s; reconnecting", descriptor, exc)

        try:
            self.initialize(descriptor.raw)
        except SinkError:
            self.close_and_schedule_reconnection()
            raise

        with self._lock:
            sock = self._socket
        try:
            if sock is None:
                raise OSError("socket closed during reconnect")
            sock.sendall(payload)
        except OSError as exc:
            self.close_and_schedule_reconnection()
            raise DeliveryError(f"Error writing to '{descriptor}': {exc}") from exc
        self._mark_forwarded()

    def request_reload(self) -> None:
        """Ask the forwarder to reopen the connection on its next iteration."""
        self._reload_requested.set()

    def _reconnect(self) -> None:
        target = self.identifier()
        try:
            self.initialize(target)
        except SinkError as exc:
            self._logger.warning("reconnect failed target=%s error=%s", target, exc)
            self.close_and_schedule_reconnection()

    def _refresh(self, now: float) -> None:
        with self._lock:
            due = self._state is not ConnectionState.CONNECTED and now >= self._reconnect_time
        if due:
            self._reconnect()

    def run(
        self,
        messages: queue.Queue[str | None],
        errors: queue.Queue[BaseException],
    ) -> None:
        with self._lock:
            if self._connect_time is None:
                raise SinkNotInitializedError("Output socket not open")
        if self.running:
            raise RuntimeError(f"Forwarder already running for '{self.identifier()}'")

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._forward_loop,
            args=(messages, errors),
            name="netsink-forwarder",
            daemon=True,
        )
        self._thread.start()

    def _forward_loop(
        self,
        messages: queue.Queue[str | None],
        errors: queue.Queue[BaseException],
    ) -> None:
        next_refresh = time.monotonic() + self._refresh_interval
        while not self._stop_event.is_set():
            if self._reload_requested.is_set():
                self._reload_requested.clear()
                self._logger.info("reload requested target=%s", self.identifier())
                self._reconnect()

            timeout = max(0.0, next_refresh - time.monotonic())
            try:
                message = messages.get(timeout=timeout)
            except queue.Empty:
                pass
            else:
                if message is None:
                    self._logger.info("end of stream target=%s", self.identifier())
                    return
                try:
                    self.deliver(message)
                except Exception as exc:
                    self._logger.error(
                        "fatal delivery error target=%s error=%s; forwarder stopped",
                        self.identifier(),
                        exc,
                        exc_info=not isinstance(exc, SinkError),
                    )
                    if self._metrics is not None:
                        self._metrics.mark_failure()
                    errors.put(exc)
                    return

            now = time.monotonic()
            if now >= next_refresh:
                self._refresh(now)
                next_refresh = now + self._refresh_interval

    def wait(self, timeout: float | None = None) -> bool:
        """Join the forwarder. Returns True once it has exited."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout=timeout)
        return not thread.is_alive()

    def close(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            if timeout is None:
                timeout = max(2.0, self._refresh_interval * 2)
            thread.join(timeout=timeout)
        # A forwarder stuck in a write keeps its slot so run() cannot start a second one.
        if thread is not None and not thread.is_alive():
            self._thread = None

        with self._lock:
            self._close_socket_locked()
            self._state = ConnectionState.DISCONNECTED_UNSCHEDULED
