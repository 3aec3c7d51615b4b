"""A robust, concurrent file downloader with retries, resume and progress tracking."""

__version__ = "0.0.10"