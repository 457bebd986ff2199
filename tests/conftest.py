from __future__ import annotations

from typing import Sequence

import pytest

from hostprobe.errors import ToolUnavailable


class FakeRunner:
    """Stands in for CommandRunner; maps argv tuples to canned output.

    A mapped value that is an exception is raised. Unmapped commands fail
    as if the binary were missing. Every call is recorded in ``calls``.
    """

    def __init__(self, responses: dict[tuple[str, ...], str | Exception] | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, ...]] = []

    def set(self, command: Sequence[str], output: str | Exception) -> None:
        self.responses[tuple(command)] = output

    def fail(self, command: Sequence[str]) -> None:
        self.responses[tuple(command)] = ToolUnavailable(command, "exited with status 1")

    async def run(self, command: Sequence[str]) -> str:
        key = tuple(command)
        self.calls.append(key)
        result = self.responses.get(key)
        if result is None:
            raise ToolUnavailable(command, f"cannot execute {command[0]}")
        if isinstance(result, Exception):
            raise result
        return result

    def count(self, program: str, *args: str) -> int:
        """Number of calls whose argv starts with ``program`` and ``args``."""
        prefix = (program, *args)
        return sum(1 for c in self.calls if c[: len(prefix)] == prefix)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()
