"""Exceptions raised by the research co-pilot."""

from __future__ import annotations


class CopilotError(RuntimeError):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500


class InvalidRequestError(CopilotError):
    """Raised when a request is missing required fields."""

    status_code = 400


class SessionNotFoundError(CopilotError):
    """Raised for an unknown or expired chat session."""

    status_code = 404

    def __init__(self, session_id: str) -> None:
        super().__init__("Session not found. Please generate a new research report.")
        self.session_id = session_id


class TextGenerationError(CopilotError):
    """Raised when the language model returns nothing usable."""
