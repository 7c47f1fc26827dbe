"""Exception hierarchy for the trade cost simulator."""

from __future__ import annotations


class SimulatorError(Exception):
    """Base exception for all simulator errors."""


class FeedError(SimulatorError):
    """Errors related to the order book stream."""


class FeedConnectionError(FeedError):
    """Transport or handshake failure. Retried after a fixed delay."""


class ProtocolError(FeedError):
    """Malformed or incomplete frame — dropped, never fatal."""


class ValidationError(SimulatorError, ValueError):
    """Invalid simulation inputs."""


class InternalComputeError(SimulatorError):
    """Unexpected failure inside the cost models."""


class ConfigError(SimulatorError):
    """Errors related to configuration loading or validation."""
