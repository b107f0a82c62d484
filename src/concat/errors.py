from __future__ import annotations


class ConcatError(Exception):
    """Base class for errors raised by concat."""


class ConfigError(ConcatError, ValueError):
    """Bad option values or an unusable output location. Nothing is written."""


class OutputWriteError(ConcatError, OSError):
    """The final document could not be written."""


class TreeUnavailableError(ConcatError, RuntimeError):
    """The directory tree collaborator could not produce a tree."""
