"""Environment-driven configuration for the note server and the HTTP client."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from fractions import Fraction

from .logger import Field, Logger

__all__ = ["ServerEnv", "ClientEnv", "parse_duration", "setup_server_env", "setup_client_env"]

_UNIT_NANOS = {
    "ns": 1,
    "us": 10**3,
    "µs": 10**3,
    "μs": 10**3,
    "ms": 10**6,
    "s": 10**9,
    "m": 60 * 10**9,
    "h": 3600 * 10**9,
}
_COMPONENT = re.compile(r"([0-9]*)(?:\.([0-9]*))?(ns|us|µs|μs|ms|s|m|h)?")
_MAX_NANOS = 2**63 - 1
_INTEGER = re.compile(r"[+-]?[0-9]+")

DEFAULT_CAPACITY = 3


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as "300ms", "-1.5h" or "2h45m".

    Valid units are ns, us (or µs), ms, s, m and h. Precision below a
    microsecond is truncated. Raises ValueError on malformed input.
    """
    original = text
    negative = False
    if text and text[0] in "+-":
        negative = text[0] == "-"
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError(f"invalid duration {original!r}")

    total = Fraction(0)
    pos = 0
    while pos < len(text):
        match = _COMPONENT.match(text, pos)
        whole, frac, unit = match.groups()
        if not whole and not frac:
            raise ValueError(f"invalid duration {original!r}")
        if unit is None:
            raise ValueError(f"missing unit in duration {original!r}")
        value = Fraction(int(whole or "0"))
        if frac:
            value += Fraction(int(frac), 10 ** len(frac))
        total += value * _UNIT_NANOS[unit]
        pos = match.end()

    limit = _MAX_NANOS + 1 if negative else _MAX_NANOS
    if total > limit:
        raise ValueError(f"invalid duration {original!r}")
    nanos = int(total)
    micros = int(Fraction(nanos, 1000))
    return timedelta(microseconds=-micros if negative else micros)


def _atoi(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"invalid integer {text!r}")
    return int(text)


def _duration_or_zero(text: str) -> timedelta:
    try:
        return parse_duration(text)
    except ValueError:
        return timedelta(0)


@dataclass
class ServerEnv:
    """Settings of the note server."""

    port: str = ""
    max_connection_idle: timedelta = timedelta(0)
    max_connection_age: timedelta = timedelta(0)
    max_connection_age_grace: timedelta = timedelta(0)
    time: timedelta = timedelta(0)
    timeout: timedelta = timedelta(0)
    capacity: int = DEFAULT_CAPACITY


@dataclass
class ClientEnv:
    """Settings of the HTTP client service."""

    host: str = ""
    port: str = ""
    host_grpc: str = ""
    port_grpc: str = ""


def setup_server_env(log: Logger, environ: Mapping[str, str] | None = None) -> ServerEnv:
    """Read the server settings; unparsable durations become zero."""
    env = os.environ if environ is None else environ
    try:
        capacity = _atoi(env.get("CAPACITY", ""))
    except ValueError:
        capacity = DEFAULT_CAPACITY
        log.info("set default value on CAPACITY", Field("capacity", capacity))
    return ServerEnv(
        port=env.get("GRPC_PORT", ""),
        max_connection_idle=_duration_or_zero(env.get("MAX_CONNECTION_IDLE", "")),
        max_connection_age=_duration_or_zero(env.get("MAX_CONNECTION_AGE", "")),
        max_connection_age_grace=_duration_or_zero(env.get("MAX_CONNECTION_AGE_GRACE", "")),
        time=_duration_or_zero(env.get("TIME", "")),
        timeout=_duration_or_zero(env.get("TIMEOUT", "")),
        capacity=capacity,
    )


def setup_client_env(log: Logger, environ: Mapping[str, str] | None = None) -> ClientEnv:
    """Read the client settings, filling in defaults for missing values."""
    env = os.environ if environ is None else environ
    host = env.get("CLIENT_HOST", "")
    port = env.get("CLIENT_PORT", "")
    port_grpc = env.get("GRPC_PORT", "")
    host_grpc = env.get("GRPC_HOST", "")
    if not host:
        log.info("host variable is not found; the default value is localhost")
        host = "localhost"
    if not port:
        log.info("port variable is not found; the default value is 8080")
        port = "8080"
    if not port_grpc:
        log.info("portGRPC variable is not found; the default value is 50051")
        port_grpc = "50051"
    if not host_grpc:
        log.info("hostGRPC variable is not found; the default value is localhost")
        host_grpc = "localhost"
    return ClientEnv(host=host, port=port, host_grpc=host_grpc, port_grpc=port_grpc)