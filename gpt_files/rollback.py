"""Compensation log used to undo a partially applied bulk operation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Tuple

logger = logging.getLogger(__name__)

UndoAction = Callable[[], Awaitable[object]]


@dataclass
class CompensationLog:
    """Completed steps with their undo actions, replayed newest first."""

    steps: List[Tuple[str, UndoAction]] = field(default_factory=list)

    def record(self, description: str, undo: UndoAction) -> None:
        self.steps.append((description, undo))

    def __len__(self) -> int:
        return len(self.steps)

    async def unwind(self) -> List[Tuple[str, Exception]]:
        """Run every undo action in reverse order.

        A failing undo is logged and skipped; the remaining undos still run.
        Returns the (description, error) pairs of the undos that failed.
        """
        failures: List[Tuple[str, Exception]] = []
        while self.steps:
            description, undo = self.steps.pop()
            logger.info("Rolling back: %s", description)
            try:
                await undo()
            except Exception as exc:  # pylint: disable=broad-except
                logger.error("Rollback step failed (%s): %s", description, exc, exc_info=True)
                failures.append((description, exc))
        return failures
