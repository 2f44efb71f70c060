"""A small in-memory key-value store and TCP server speaking a subset of RESP."""

__version__ = "0.1.0"
__all__ = ["commands", "database", "main", "server"]