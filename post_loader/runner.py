"""Background run coordination returning join handles to the caller."""

from __future__ import annotations

import asyncio
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from concurrent.futures import wait as futures_wait
from typing import Callable

import structlog

from .config import LoaderConfig
from .engine import Aggregator, JsonFetcher, PostWithDetails

FetcherFactory = Callable[[LoaderConfig], JsonFetcher]


class RunTimeoutError(TimeoutError):
    """The caller's wait budget elapsed before the run finished."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Load did not finish within {timeout:g} seconds")
        self.timeout = timeout


class LoadRunner:
    """Run loads on a worker thread, each on its own event loop."""

    def __init__(
        self,
        config: LoaderConfig,
        fetcher_factory: FetcherFactory | None = None,
        max_workers: int = 1,
    ) -> None:
        self.config = config
        self.fetcher_factory = fetcher_factory or JsonFetcher
        self.logger = structlog.get_logger("post_loader").bind(component="runner")
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="loader")

    def submit(self) -> Future[list[PostWithDetails]]:
        """Start a run in the background and return its join handle."""

        self.logger.info("run_submitted", base_url=self.config.base_url)
        return self._executor.submit(self._run_in_thread)

    def run(self) -> list[PostWithDetails]:
        return self.submit().result()

    def wait(
        self,
        future: Future[list[PostWithDetails]],
        timeout: float | None = None,
        on_tick: Callable[[], object] | None = None,
        interval: float = 0.25,
    ) -> list[PostWithDetails]:
        """Block on ``future`` for at most the wait budget.

        With ``on_tick`` the wait is split into ``interval`` slices and the
        callback runs after each one that ends without a result.
        """
        budget = self.config.wait_timeout if timeout is None else timeout
        if on_tick is not None:
            deadline = time.monotonic() + budget
            while not future.done():
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                futures_wait([future], timeout=min(interval, remaining))
                if not future.done():
                    on_tick()
        try:
            return future.result(timeout=0 if on_tick is not None else budget)
        except FutureTimeoutError as exc:
            self.logger.error("run_wait_timeout", timeout=budget)
            raise RunTimeoutError(budget) from exc

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)

    def _run_in_thread(self) -> list[PostWithDetails]:
        return asyncio.run(self._run_once())

    async def _run_once(self) -> list[PostWithDetails]:
        async with self.fetcher_factory(self.config) as fetcher:
            return await Aggregator(fetcher, self.config).run()


__all__ = ["FetcherFactory", "LoadRunner", "RunTimeoutError"]
