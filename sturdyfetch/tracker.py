"""Progress bookkeeping for a single download."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

__all__ = ["DownloadTracker"]


@dataclass
class DownloadTracker:
    """Keeps a progress bar in step with the bytes received.

    ``progress_bar`` may be any object with ``total`` and ``n`` attributes and
    ``refresh()`` and ``set_postfix_str()`` methods, such as a tqdm bar, or None.
    """

    url: str
    downloaded_size: int = 0
    remaining_size: int = 0
    progress_bar: Any = None
    start_time: float = field(default_factory=time.monotonic)

    def init_progress(self) -> None:
        """Set the bar's length and position from the sizes known so far."""
        if self.progress_bar is None:
            return
        self.progress_bar.total = self.remaining_size + self.downloaded_size
        self.progress_bar.n = self.downloaded_size
        self.progress_bar.refresh()

    def update_progress(self, chunk_size: int) -> None:
        """Account for ``chunk_size`` more bytes received."""
        self.downloaded_size += chunk_size
        if self.progress_bar is not None:
            self.progress_bar.n = self.downloaded_size
        self._update_speed()

    def percentage(self) -> int:
        """Share of the file received, in whole percent."""
        total = self.remaining_size + self.downloaded_size
        if total == 0:
            return 0
        return int(self.downloaded_size / total * 100)

    def message(self) -> str:
        """Status text shown next to the bar."""
        return f"{self.percentage()}% {self.url} "

    def _update_speed(self) -> None:
        if time.monotonic() - self.start_time > 0 and self.progress_bar is not None:
            self.progress_bar.set_postfix_str(self.message())