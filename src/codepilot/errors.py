"""Error types raised by ingestion, lookups, and assistant calls."""

from __future__ import annotations


class CodePilotError(Exception):
    """Base class for all errors surfaced to the caller of a session action."""


class DecodeError(CodePilotError):
    """Raised when an uploaded archive (or data URI) cannot be decoded."""


class NotFound(CodePilotError):
    """Raised when a file path or session id is not present."""


class ValidationError(CodePilotError):
    """Raised when required user input is missing before calling the assistant."""


class AssistantError(CodePilotError):
    """Raised when the text-generation backend fails or returns unusable output."""
