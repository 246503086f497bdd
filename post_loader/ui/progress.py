"""Spinner shown while a load runs, with elapsed time against the wait budget."""

from __future__ import annotations

import time
from typing import Callable

from rich.console import Console
from rich.status import Status


class ProgressActivity:
    """Rich status spinner that counts a run's elapsed time against its wait budget.

    ``tick()`` is meant to be called from the CLI's wait loop; it refreshes the
    spinner text to e.g. ``Loading ... [3s of 30s]``. When disabled nothing is
    drawn but elapsed time is still tracked.
    """

    def __init__(
        self,
        enabled: bool = True,
        console: Console | None = None,
        budget: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.enabled = enabled
        self.console = console or Console()
        self.budget = budget
        self._clock = clock
        self._status: Status | None = None
        self._message = ""
        self._started_at: float | None = None

    def __enter__(self) -> "ProgressActivity":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def active(self) -> bool:
        return self._status is not None

    @property
    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return self._clock() - self._started_at

    @property
    def remaining(self) -> float | None:
        if self.budget is None:
            return None
        return max(self.budget - self.elapsed, 0.0)

    def describe(self) -> str:
        elapsed = f"{self.elapsed:.0f}s"
        if self.budget is None:
            return f"{self._message} [{elapsed}]"
        return f"{self._message} [{elapsed} of {self.budget:g}s]"

    def start(self, message: str) -> None:
        if self._started_at is not None:
            return
        self._message = message
        self._started_at = self._clock()
        if self.enabled:
            self._status = self.console.status(self.describe())
            self._status.start()

    def tick(self) -> str:
        text = self.describe()
        if self._status is not None:
            self._status.update(text)
        return text

    def update(self, message: str) -> None:
        self._message = message
        self.tick()

    def close(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None


__all__ = ["ProgressActivity"]
