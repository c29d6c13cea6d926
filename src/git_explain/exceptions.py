"""Exception hierarchy for git-explain.

Callers can catch ``GitExplainError`` for anything raised by this package,
or one of the narrower types below to recover where it makes sense.
"""

from __future__ import annotations


class GitExplainError(Exception):
    """Base exception for git-explain errors."""


class RepositoryError(GitExplainError):
    """Raised when a path is not an openable git repository or git fails."""


class GenerationError(GitExplainError):
    """Raised when a single analysis backend call fails.

    Covers network failures, authentication failures, errors reported by the
    provider and empty or malformed responses.
    """


class PipelineError(GitExplainError):
    """Raised when the change analysis pipeline cannot produce a result.

    Attributes:
        path: File whose analysis failed, or None when the diff source failed
        cause: The underlying error (diff source failure or GenerationError)
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.cause = cause

    def __str__(self) -> str:
        message = super().__str__()
        if self.path:
            return f"{self.path}: {message}"
        return message


class InputCancelled(GitExplainError):
    """Raised when the operator aborts a prompt."""


class ConfigurationError(GitExplainError):
    """Raised when configuration values are invalid or unknown."""
