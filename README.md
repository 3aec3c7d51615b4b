# sturdyfetch

A robust, concurrent file downloader with retry capabilities and progress tracking.

- Concurrent downloads with a configurable limit
- Automatic retries with exponential backoff on transient failures
- Resumes partially downloaded files using HTTP `Range` requests
- Optional integrity checks (SHA-256, SHA-512, SHA3-256, MD5, SHA-1, BLAKE2)
- One progress bar per file
- Downloads land in a temporary file first and are moved into place only when complete

## Installation

```
pip install sturdyfetch
```

## Usage

```python
import asyncio

from sturdyfetch.downloader import RobustDownloader
from sturdyfetch.item import DownloadItem, HashAlgorithm, Integrity


async def main() -> None:
    downloader = RobustDownloader(max_concurrent=4)
    await downloader.download([
        DownloadItem(
            url="https://example.com/file1.zip",
            target="local/file1.zip",
        ),
        DownloadItem(
            url="https://example.com/file2.zip",
            target="local/file2.zip",
            integrity=Integrity(HashAlgorithm.SHA256, "<expected hex digest>"),
        ),
    ])


asyncio.run(main())
```

### Settings

`RobustDownloader` accepts:

| Setting           | Default    | Meaning                                            |
|-------------------|------------|----------------------------------------------------|
| `connect_timeout` | 2 seconds  | Connection timeout for each request                |
| `timeout`         | 60 seconds | Overall timeout for each download attempt          |
| `flush_threshold` | 512 KiB    | Buffered bytes that trigger a flush to disk        |
| `max_concurrent`  | 2          | Maximum number of downloads running at once        |

### Retries

Each file is retried with exponential backoff (`RobustDownloader.backoff()` returns
the `BackoffPolicy`): 500 ms initial interval, 15 % randomisation, 1.5× multiplier,
5 s maximum interval, and 120 s total before giving up.

Network timeouts, connection failures, 5xx responses, and 408/425/429/449 responses
count as transient and are retried. Path errors and integrity mismatches are permanent
and are raised at once. `sturdyfetch.errors.is_transient` makes this decision.

### Errors

Every failure is raised as a subclass of `sturdyfetch.errors.ProgressDownloadError`:
`DownloadIOError`, `HttpError`, `DownloadTimeoutError`, `SemaphoreError`, `PathError`
and `IntegrityHashError`.