"""Caching HTTP/1.0 proxy parts and thread-synchronisation building blocks."""

__version__ = "0.1.0"