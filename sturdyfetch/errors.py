"""Errors raised while downloading, and how they are classified for retrying."""

from __future__ import annotations

import errno
from os import PathLike
from pathlib import Path

import httpx

__all__ = [
    "ProgressDownloadError",
    "DownloadIOError",
    "HttpError",
    "DownloadTimeoutError",
    "SemaphoreError",
    "PathError",
    "IntegrityHashError",
    "is_transient",
]

_RETRY_STATUS_CODES = frozenset({408, 425, 429, 449})

_TRANSIENT_ERRNOS = frozenset(
    code
    for code in (
        getattr(errno, "EAGAIN", None),
        getattr(errno, "EWOULDBLOCK", None),
        getattr(errno, "EINTR", None),
        getattr(errno, "EBUSY", None),
        getattr(errno, "ECONNRESET", None),
        getattr(errno, "ECONNABORTED", None),
        getattr(errno, "EPIPE", None),
        getattr(errno, "ETIMEDOUT", None),
        getattr(errno, "ENOMEM", None),
    )
    if code is not None
)

_TRANSIENT_HTTPX_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    httpx.DecodingError,
)


class ProgressDownloadError(Exception):
    """Base class of every error a download can end with."""


class DownloadIOError(ProgressDownloadError):
    """A file-system or socket operation failed."""

    def __init__(self, cause: OSError) -> None:
        super().__init__(f"IO error: {cause}")
        self.cause = cause

    @property
    def transient(self) -> bool:
        code = self.cause.errno
        # An error without an errno is an unclassified one: retry conservatively.
        return code is None or code in _TRANSIENT_ERRNOS


class HttpError(ProgressDownloadError):
    """The HTTP client reported a failure."""

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"HTTP error: {cause}")
        self.cause = cause

    @property
    def status_code(self) -> int | None:
        if isinstance(self.cause, httpx.HTTPStatusError):
            return self.cause.response.status_code
        return None

    @property
    def transient(self) -> bool:
        if isinstance(self.cause, _TRANSIENT_HTTPX_ERRORS):
            return True
        status = self.status_code
        if status is None:
            return False
        return 500 <= status <= 599 or status in _RETRY_STATUS_CODES


class DownloadTimeoutError(ProgressDownloadError):
    """A download stalled for longer than allowed."""

    def __init__(self, detail: str = "deadline has elapsed") -> None:
        super().__init__(f"Timeout error: {detail}")
        self.detail = detail


class SemaphoreError(ProgressDownloadError):
    """A concurrency slot could not be acquired."""

    def __init__(self, detail: str = "semaphore closed") -> None:
        super().__init__(f"Semaphore error: {detail}")
        self.detail = detail


class PathError(ProgressDownloadError):
    """The target path has no file name."""

    def __init__(self, path: str | PathLike[str]) -> None:
        self.path = str(path)
        super().__init__(f"Path error: {self.path}")


class IntegrityHashError(ProgressDownloadError):
    """The downloaded file does not have the expected digest."""

    def __init__(
        self,
        expect: str,
        actual: str,
        actual_file: str | PathLike[str],
        target_file: str | PathLike[str],
    ) -> None:
        self.expect = expect
        self.actual = actual
        self.actual_file = Path(actual_file)
        self.target_file = Path(target_file)
        super().__init__(
            f"Integrity hash mismatch - expected: {expect}, actual: {actual} , "
            f"actual_file:{self.actual_file} , target_file: {self.target_file}"
        )


def is_transient(error: BaseException) -> bool:
    """Tell whether a failed download is worth another attempt."""
    if isinstance(error, (DownloadIOError, HttpError)):
        return error.transient
    return isinstance(error, (DownloadTimeoutError, SemaphoreError))