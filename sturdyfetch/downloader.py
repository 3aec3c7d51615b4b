"""Concurrent downloading of many items with retries and progress bars."""

from __future__ import annotations

import asyncio
import random
import sys
import tempfile
import time
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Any

import httpx
from tqdm import tqdm

from sturdyfetch.errors import PathError, ProgressDownloadError, is_transient
from sturdyfetch.item import DownloadItem
from sturdyfetch.task import DownloadTask

__all__ = ["BackoffPolicy", "RobustDownloader"]


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff between attempts; times are in seconds.

    ``max_elapsed_time`` of None means retrying never gives up.
    """

    initial_interval: float = 0.5
    randomization_factor: float = 0.15
    multiplier: float = 1.5
    max_interval: float = 5.0
    max_elapsed_time: float | None = 120.0
    rng: random.Random = field(default_factory=random.Random, compare=False, repr=False)

    def delays(self) -> Iterator[float]:
        """Yield the waits before successive retries until time runs out.

        The elapsed time is measured from this call.
        """
        return self._delays(time.monotonic())

    def _delays(self, started: float) -> Iterator[float]:
        current = self.initial_interval
        while self.max_elapsed_time is None or time.monotonic() - started <= self.max_elapsed_time:
            delta = self.randomization_factor * current
            yield self.rng.uniform(current - delta, current + delta)
            current = min(current * self.multiplier, self.max_interval)


@dataclass
class RobustDownloader:
    """Downloads many files at once, retrying transient failures.

    Timeouts are in seconds. Each file is first written to a temporary file
    named after the target, in ``temp_dir`` or the system temporary directory.
    """

    connect_timeout: float = 2.0
    timeout: float = 60.0
    flush_threshold: int = 512 * 1024
    max_concurrent: int = 2
    show_progress: bool = True
    temp_dir: str | PathLike[str] | None = None
    retry_policy: BackoffPolicy | None = None

    def backoff(self) -> BackoffPolicy:
        """The retry schedule used for every item."""
        return self.retry_policy if self.retry_policy is not None else BackoffPolicy()

    async def download(self, items: Iterable[DownloadItem]) -> None:
        """Download every item; the first failure that is not retried is raised."""
        items = list(items)
        semaphore = asyncio.Semaphore(self.max_concurrent)
        timeout = httpx.Timeout(self.timeout, connect=self.connect_timeout)
        limits = httpx.Limits(max_keepalive_connections=0)
        async with httpx.AsyncClient(
            timeout=timeout, limits=limits, follow_redirects=True, max_redirects=10
        ) as client:
            jobs = [
                asyncio.ensure_future(self._guarded(semaphore, client, item, position))
                for position, item in enumerate(items)
            ]
            try:
                await asyncio.gather(*jobs)
            except BaseException:
                for job in jobs:
                    job.cancel()
                await asyncio.gather(*jobs, return_exceptions=True)
                raise

    async def _guarded(
        self,
        semaphore: asyncio.Semaphore,
        client: httpx.AsyncClient,
        item: DownloadItem,
        position: int,
    ) -> None:
        async with semaphore:
            await self._download_with_retry(client, item, position)

    def _progress_bar(self, position: int) -> Any:
        if not self.show_progress:
            return None
        return tqdm(
            total=0,
            position=position,
            unit="B",
            unit_scale=True,
            unit_divisor=1024,
            leave=False,
            dynamic_ncols=True,
            file=sys.stdout,
        )

    async def _download_with_retry(
        self, client: httpx.AsyncClient, item: DownloadItem, position: int
    ) -> None:
        target = item.target
        if target.name in ("", ".."):
            raise PathError(target)
        temp_dir = Path(self.temp_dir) if self.temp_dir is not None else Path(tempfile.gettempdir())

        bar = self._progress_bar(position)
        try:
            task = DownloadTask(
                client=client,
                item=item,
                tmp_file=temp_dir / target.name,
                timeout=self.timeout,
                flush_threshold=self.flush_threshold,
                progress_bar=bar,
            )
            delays = self.backoff().delays()
            while True:
                try:
                    await task.download()
                    return
                except ProgressDownloadError as error:
                    if not is_transient(error):
                        raise
                    delay = next(delays, None)
                    if delay is None:
                        raise
                    await asyncio.sleep(delay)
        finally:
            if bar is not None:
                bar.close()