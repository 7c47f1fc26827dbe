"""Transport interface for the order book stream."""

from __future__ import annotations

from typing import Protocol


class FeedTransport(Protocol):
    """Subset of ``websocket.WebSocket`` the ingestor relies on.

    A blocking ``recv`` returns one text frame. ``close`` may be called from
    another thread and must make a pending ``recv`` fail promptly.
    """

    def recv(self) -> str | bytes:
        """Block until the next frame arrives or the socket timeout expires."""

    def ping(self, payload: str | bytes = "") -> None:
        """Send a ping control frame."""

    def settimeout(self, timeout: float | None) -> None:
        """Set the receive timeout in seconds."""

    def close(self) -> None:
        """Send a close frame and release the socket."""


class Connector(Protocol):
    def __call__(self, url: str, timeout: float) -> FeedTransport:
        """Open a connection and complete the WebSocket handshake."""
