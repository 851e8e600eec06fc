"""Exceptions tool handlers raise to classify their failures."""

from __future__ import annotations


class ToolError(Exception):
    """A handler failure reported to the caller as an error result."""


class EntityNotFoundError(ToolError):
    """The requested entity does not exist (e.g. an invalid ticker symbol).

    Buffered calls answer 404 instead of an ``isError`` content item.
    """


class InvalidTransitionError(RuntimeError):
    """A streaming session tried to move to a state it cannot reach."""
