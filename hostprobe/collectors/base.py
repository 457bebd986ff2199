from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Sequence

from hostprobe.errors import ToolUnavailable
from hostprobe.runner import CommandRunner

logger = logging.getLogger(__name__)


class Mode(StrEnum):
    """Result of a capability probe."""

    FULL = "full"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class Probe:
    mode: Mode
    output: str = ""
    command: tuple[str, ...] = ()


class BaseCollector(ABC):
    """Abstract base for all telemetry collectors.

    Subclasses implement ``collect()``, which runs one collection cycle
    and returns the records it produced. Each call is independent; no
    state is carried between cycles.
    """

    name: str = "base"

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    # ── abstract method ─────────────────────────────────

    @abstractmethod
    async def collect(self) -> list[Any]:
        """Run one collection cycle and return its records."""
        ...

    # ── helpers ─────────────────────────────────────────

    async def probe(
        self,
        full: Sequence[str],
        degraded: Sequence[str],
    ) -> Probe:
        """Try ``full`` then ``degraded`` once and report which one ran."""
        try:
            return Probe(Mode.FULL, await self._runner.run(full), tuple(full))
        except ToolUnavailable as exc:
            logger.warning("Collector [%s] falling back: %s", self.name, exc)

        try:
            return Probe(Mode.DEGRADED, await self._runner.run(degraded), tuple(degraded))
        except ToolUnavailable as exc:
            logger.error("Collector [%s] has no working tool: %s", self.name, exc)
            return Probe(Mode.UNAVAILABLE)

    async def run_optional(self, command: Sequence[str]) -> str | None:
        """Run a lookup whose failure only leaves fields empty."""
        try:
            return await self._runner.run(command)
        except ToolUnavailable:
            return None
