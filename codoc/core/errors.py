from __future__ import annotations


class CodocError(Exception):
    """Base class for errors raised by codoc."""


class ConfigError(CodocError, ValueError):
    """Invalid project configuration."""


class CacheError(CodocError):
    """The scan cache could not be written."""
