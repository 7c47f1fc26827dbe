"""WebSocket order book ingestion with fixed-delay reconnect."""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

import websocket

from packages.common.errors import FeedConnectionError, ProtocolError
from packages.common.logging import get_logger
from packages.common.time_utils import utc_now
from packages.data_ingestion.parser import parse_frame
from packages.monitoring.metrics_exporter import (
    record_connected,
    record_error,
    record_dropped_frame,
    record_frame,
    record_heartbeat_failure,
    record_reconnect,
)

if TYPE_CHECKING:
    from datetime import datetime

    from packages.common.config import FeedConfig
    from packages.data_ingestion.interfaces import Connector, FeedTransport
    from packages.orderbook.history import OrderBookHistory
    from packages.runtime.signals import WakeSignal

logger = get_logger(__name__)

HEARTBEAT_PAYLOAD = "heartbeat"

# websocket-client raises its own hierarchy for protocol-level failures and
# plain OSError (ssl.SSLError, ConnectionResetError, ...) for socket ones.
_TRANSPORT_ERRORS = (websocket.WebSocketException, OSError)


def _create_connection(url: str, timeout: float) -> FeedTransport:
    return websocket.create_connection(url, timeout=timeout)


class FeedIngestor:
    """Owns the streaming connection and feeds validated snapshots to history.

    ``run`` is meant for a dedicated thread. It connects, receives until the
    connection drops, waits ``retry_interval`` seconds and tries again, all
    in one loop, until the shared shutdown flag is set. ``close`` may be
    called from any thread to interrupt a blocked receive.

    The socket receive timeout equals the ping interval, so an idle stream
    still hands control back to the loop for heartbeats and the shutdown
    check. A timeout is not a disconnect.
    """

    def __init__(
        self,
        endpoint: str,
        history: OrderBookHistory,
        wake: WakeSignal,
        retry_interval: float = 5.0,
        ping_interval: float = 20.0,
        connect_timeout: float = 10.0,
        connector: Connector | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._history = history
        self._wake = wake
        self._retry_interval = retry_interval
        self._ping_interval = ping_interval
        self._connect_timeout = connect_timeout
        self._connector = connector or _create_connection

        self._conn_lock = threading.Lock()
        self._ws: FeedTransport | None = None
        self._last_ping = time.monotonic()
        self._thread: threading.Thread | None = None

        self.messages_received = 0
        self.messages_dropped = 0
        self.reconnects = 0
        self.last_message_at: datetime | None = None

    @classmethod
    def from_config(
        cls,
        config: FeedConfig,
        history: OrderBookHistory,
        wake: WakeSignal,
        connector: Connector | None = None,
    ) -> FeedIngestor:
        return cls(
            endpoint=config.endpoint,
            history=history,
            wake=wake,
            retry_interval=config.retry_interval_seconds,
            ping_interval=config.ping_interval_seconds,
            connect_timeout=config.connect_timeout_seconds,
            connector=connector,
        )

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def connected(self) -> bool:
        with self._conn_lock:
            return self._ws is not None

    # ------------------------------------------------------------------
    # Connection management
    # ------------------------------------------------------------------

    def connect(self, endpoint: str | None = None) -> None:
        """Open the socket and complete the handshake. One attempt only."""
        url = endpoint or self._endpoint
        try:
            ws = self._connector(url, self._connect_timeout)
            ws.settimeout(self._ping_interval)
        except (*_TRANSPORT_ERRORS, ValueError) as e:
            raise FeedConnectionError(f"Connection to {url} failed: {e}") from e

        with self._conn_lock:
            self._ws = ws
        self._last_ping = time.monotonic()
        record_connected(True)
        logger.info("feed_connected", endpoint=url)

    def close(self) -> None:
        """Release the transport. Idempotent and safe from any thread."""
        with self._conn_lock:
            ws, self._ws = self._ws, None
        if ws is None:
            return
        record_connected(False)
        try:
            ws.close()
        except _TRANSPORT_ERRORS as e:
            logger.warning("feed_close_failed", error=str(e))
        logger.info("feed_closed", endpoint=self._endpoint)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Connect/receive/retry until shutdown. Never recursive, never fatal."""
        attempt = 0
        while not self._wake.is_shutdown:
            attempt += 1
            try:
                self.connect()
            except FeedConnectionError as e:
                logger.error(
                    "feed_connect_failed",
                    attempt=attempt,
                    error=str(e),
                    retry_in_seconds=self._retry_interval,
                )
                self._wait_before_retry()
                continue

            attempt = 0
            try:
                self._receive_loop()
            except FeedConnectionError as e:
                logger.warning("feed_disconnected", error=str(e))
            except Exception as e:
                record_error("feed")
                logger.error(
                    "feed_receive_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
            finally:
                self.close()

            if not self._wake.is_shutdown:
                self._wait_before_retry()

        logger.info("feed_stopped", messages=self.messages_received, dropped=self.messages_dropped)

    def _wait_before_retry(self) -> None:
        if self._wake.wait_for_shutdown(self._retry_interval):
            return
        self.reconnects += 1
        record_reconnect()
        logger.info("feed_reconnecting", endpoint=self._endpoint, reconnects=self.reconnects)

    def _receive_loop(self) -> None:
        with self._conn_lock:
            ws = self._ws
        if ws is None:
            return

        while not self._wake.is_shutdown:
            try:
                raw = ws.recv()
            except (websocket.WebSocketTimeoutException, TimeoutError):
                raw = None
            except _TRANSPORT_ERRORS as e:
                if self._wake.is_shutdown:
                    return
                raise FeedConnectionError(f"Receive failed: {e}") from e

            if raw:
                self.handle_frame(raw)
            self.heartbeat(ws)

    # ------------------------------------------------------------------
    # Frames and heartbeat
    # ------------------------------------------------------------------

    def handle_frame(self, raw: str | bytes) -> bool:
        """Validate one frame and store it. Returns False if it was dropped."""
        try:
            snapshot = parse_frame(raw, received_at=utc_now())
        except ProtocolError as e:
            self.messages_dropped += 1
            record_dropped_frame(reason="protocol")
            preview = raw[:120] if isinstance(raw, str) else raw[:120].decode("utf-8", "replace")
            logger.warning("frame_dropped", error=str(e), preview=preview)
            return False

        self._history.append(snapshot)
        self.messages_received += 1
        self.last_message_at = snapshot.captured_at
        record_frame(len(self._history))
        self._wake.notify_data()
        return True

    def heartbeat(self, ws: FeedTransport, now: float | None = None) -> bool:
        """Ping if the interval has elapsed. Failures are logged only.

        Returns True when a ping was attempted.
        """
        now = time.monotonic() if now is None else now
        if now - self._last_ping < self._ping_interval:
            return False
        self._last_ping = now
        try:
            ws.ping(HEARTBEAT_PAYLOAD)
        except _TRANSPORT_ERRORS as e:
            record_heartbeat_failure()
            logger.warning("heartbeat_failed", error=str(e))
        return True

    # ------------------------------------------------------------------
    # Thread helpers
    # ------------------------------------------------------------------

    def start(self) -> threading.Thread:
        self._thread = threading.Thread(target=self.run, name="feed-ingestor", daemon=True)
        self._thread.start()
        return self._thread

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
