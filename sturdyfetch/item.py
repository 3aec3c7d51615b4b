"""What to download, where to put it, and how to check it."""

from __future__ import annotations

import enum
import hashlib
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path

__all__ = ["HashAlgorithm", "Integrity", "DownloadItem", "hash_file"]

_CHUNK_SIZE = 1024 * 1024


class HashAlgorithm(enum.Enum):
    """Digest algorithms an integrity check can use."""

    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA512 = "sha512"
    SHA3_256 = "sha3_256"
    BLAKE2B = "blake2b"
    BLAKE2S = "blake2s"


def hash_file(path: str | PathLike[str], algorithm: HashAlgorithm | str) -> str:
    """Return the lowercase hex digest of a file."""
    hasher = hashlib.new(HashAlgorithm(algorithm).value)
    with open(path, "rb") as stream:
        while chunk := stream.read(_CHUNK_SIZE):
            hasher.update(chunk)
    return hasher.hexdigest()


@dataclass(frozen=True)
class Integrity:
    """An expected digest of a downloaded file."""

    algorithm: HashAlgorithm
    value: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "algorithm", HashAlgorithm(self.algorithm))

    def digest(self, path: str | PathLike[str]) -> str:
        """Compute the digest of ``path`` with this check's algorithm."""
        return hash_file(path, self.algorithm)

    def matches(self, path: str | PathLike[str]) -> bool:
        """Tell whether ``path`` has the expected digest."""
        return self.digest(path) == self.value


@dataclass
class DownloadItem:
    """One file to fetch: its URL, its destination and an optional check."""

    url: str
    target: Path
    integrity: Integrity | None = field(default=None)

    def __post_init__(self) -> None:
        self.url = str(self.url)
        self.target = Path(self.target)