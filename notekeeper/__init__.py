"""A notes service: in-memory store, RPC-style handlers, event bus, gateway and JSON HTTP front end."""

__version__ = "0.1.0"