"""A single download attempt: fetch into a temporary file, check it, move it."""

from __future__ import annotations

import asyncio
import errno
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from sturdyfetch.errors import (
    DownloadIOError,
    DownloadTimeoutError,
    HttpError,
    IntegrityHashError,
)
from sturdyfetch.item import DownloadItem
from sturdyfetch.tracker import DownloadTracker

__all__ = ["DownloadTask"]

# Longest wait for the next chunk of the body before the attempt is abandoned.
_CHUNK_WAIT = 0.5


@dataclass
class DownloadTask:
    """Downloads one item, resuming a partial temporary file when the server allows it.

    ``timeout`` bounds the whole request, body included, in seconds.
    ``flush_threshold`` is how many buffered bytes trigger a write to disk.
    """

    client: httpx.AsyncClient
    item: DownloadItem
    tmp_file: Path
    timeout: float = 60.0
    flush_threshold: int = 512 * 1024
    progress_bar: Any = None

    def __post_init__(self) -> None:
        self.tmp_file = Path(self.tmp_file)

    async def download(self) -> None:
        """Make one attempt at fetching the item into its target."""
        try:
            await asyncio.wait_for(self._fetch(), self.timeout)
        except asyncio.TimeoutError:
            raise DownloadTimeoutError("request timed out") from None
        await self._verify()
        await self._install()

    def _existing_size(self) -> int:
        try:
            return self.tmp_file.stat().st_size
        except OSError:
            return 0

    async def _fetch(self) -> None:
        downloaded = self._existing_size()
        headers = {"Range": f"bytes={downloaded}-"}
        try:
            async with self.client.stream("GET", self.item.url, headers=headers) as response:
                resume = response.status_code == 206 and downloaded > 0
                try:
                    remaining = int(response.headers.get("Content-Length", 0))
                except ValueError:
                    remaining = 0

                tracker = DownloadTracker(
                    url=self.item.url,
                    downloaded_size=downloaded,
                    remaining_size=remaining,
                    progress_bar=self.progress_bar,
                )
                tracker.init_progress()

                with open(self.tmp_file, "ab" if resume else "wb") as out:
                    buffer = bytearray()
                    chunks = response.aiter_bytes()
                    while True:
                        try:
                            chunk = await asyncio.wait_for(anext(chunks), _CHUNK_WAIT)
                        except StopAsyncIteration:
                            break
                        except asyncio.TimeoutError:
                            raise DownloadTimeoutError() from None
                        tracker.update_progress(len(chunk))
                        buffer += chunk
                        if len(buffer) >= self.flush_threshold:
                            out.write(buffer)
                            buffer.clear()
                    out.write(buffer)
                    out.flush()
                    os.fsync(out.fileno())
        except httpx.HTTPError as error:
            raise HttpError(error) from error
        except OSError as error:
            raise DownloadIOError(error) from error

    async def _verify(self) -> None:
        integrity = self.item.integrity
        if integrity is None:
            return
        try:
            actual = await asyncio.to_thread(integrity.digest, self.tmp_file)
            if actual != integrity.value:
                self.tmp_file.unlink()
        except OSError as error:
            raise DownloadIOError(error) from error
        if actual != integrity.value:
            raise IntegrityHashError(
                expect=integrity.value,
                actual=actual,
                actual_file=self.tmp_file,
                target_file=self.item.target,
            )

    async def _install(self) -> None:
        target = self.item.target
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            try:
                os.replace(self.tmp_file, target)
            except OSError as error:
                if error.errno != errno.EXDEV:
                    raise
                await asyncio.to_thread(shutil.copyfile, self.tmp_file, target)
                self.tmp_file.unlink()
        except OSError as error:
            raise DownloadIOError(error) from error