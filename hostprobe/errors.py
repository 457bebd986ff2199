from __future__ import annotations

from typing import Sequence


class CollectionError(Exception):
    """A collection cycle could not produce a result.

    ``suggestion`` is an optional remediation hint shown to the caller
    alongside the error message.
    """

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.suggestion:
            body["suggestion"] = self.suggestion
        return body


class ToolUnavailable(CollectionError):
    """An external tool is missing, exited non-zero, or timed out."""

    def __init__(
        self,
        command: Sequence[str],
        reason: str,
        suggestion: str | None = None,
    ) -> None:
        self.command = list(command)
        self.reason = reason
        super().__init__(f"{' '.join(self.command)}: {reason}", suggestion)
