"""Sprite sheets, PCX coding, NFO headers, messages, MD5 and path helpers for TTD graphics sets."""

__version__ = "0.1.0"