"""Listening port and keepalive settings of the note server, built from options."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta

__all__ = [
    "ServerParameters",
    "setup_parameters",
    "with_port",
    "with_max_connection_idle",
    "with_max_connection_age",
    "with_max_connection_age_grace",
    "with_time",
    "with_timeout",
]

DEFAULT_PORT = "8080"


@dataclass
class ServerParameters:
    """Port and keepalive settings; a zero duration means the transport default."""

    port: str = ""
    max_connection_idle: timedelta = timedelta(0)
    max_connection_age: timedelta = timedelta(0)
    max_connection_age_grace: timedelta = timedelta(0)
    time: timedelta = timedelta(0)
    timeout: timedelta = timedelta(0)


Option = Callable[[ServerParameters], None]


def setup_parameters(*args: Option) -> ServerParameters:
    """Apply the options, in order, to default parameters."""
    parameters = ServerParameters()
    for option in args:
        option(parameters)
    return parameters


def with_port(port: str) -> Option:
    """Set the port; an empty port means the default one."""

    def apply(parameters: ServerParameters) -> None:
        parameters.port = port or DEFAULT_PORT

    return apply


def _duration_option(attribute: str, duration: timedelta) -> Option:
    def apply(parameters: ServerParameters) -> None:
        if duration:
            setattr(parameters, attribute, duration)

    return apply


def with_max_connection_idle(duration: timedelta) -> Option:
    return _duration_option("max_connection_idle", duration)


def with_max_connection_age(duration: timedelta) -> Option:
    return _duration_option("max_connection_age", duration)


def with_max_connection_age_grace(duration: timedelta) -> Option:
    return _duration_option("max_connection_age_grace", duration)


def with_time(duration: timedelta) -> Option:
    return _duration_option("time", duration)


def with_timeout(duration: timedelta) -> Option:
    return _duration_option("timeout", duration)