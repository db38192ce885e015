"""envreplace exceptions."""

from typing import List, Optional
from dataclasses import dataclass


@dataclass
class ValidationError:
    """Single configuration validation error."""
    message: str
    path: str = ""


class EnvReplaceError(Exception):
    """Base class for errors that terminate a run."""

    exit_code = 1


class ConfigurationError(EnvReplaceError):
    """Raised when the run configuration is unusable.

    Raised before any file is touched, so the CLI can map it to the
    validation exit code.
    """

    exit_code = 2

    def __init__(self, message: str, errors: Optional[List[ValidationError]] = None):
        self.errors = errors or []

        messages = [message]
        for error in self.errors:
            if error.path:
                messages.append(f"Validation error at '{error.path}': {error.message}")
            else:
                messages.append(f"Validation error: {error.message}")

        super().__init__("\n".join(messages))


class FileAccessError(EnvReplaceError):
    """Raised when a target or staging file cannot be opened or created."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"failed to open file {path}: {reason}")


class RewriteIOError(EnvReplaceError):
    """Raised when reading, writing or committing a file fails midway."""

    def __init__(self, path: str, operation: str, reason: str):
        self.path = path
        self.operation = operation
        self.reason = reason
        super().__init__(f"failed to {operation} file {path}: {reason}")
