import hashlib

import pytest

from sturdyfetch.item import DownloadItem, HashAlgorithm, Integrity, hash_file


@pytest.fixture
def sample(tmp_path):
    path = tmp_path / "data.bin"
    path.write_bytes(b"abc")
    return path


def test_sha256_of_known_vector(sample):
    assert hash_file(sample, HashAlgorithm.SHA256) == (
        "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    )


@pytest.mark.parametrize("algorithm", list(HashAlgorithm))
def test_hash_file_agrees_with_hashlib(tmp_path, algorithm):
    data = bytes(range(256)) * 9000  # spans several read chunks
    path = tmp_path / "big.bin"
    path.write_bytes(data)
    assert hash_file(path, algorithm) == hashlib.new(algorithm.value, data).hexdigest()


def test_hash_file_accepts_algorithm_name(sample):
    assert hash_file(sample, "sha256") == hash_file(sample, HashAlgorithm.SHA256)


def test_unknown_algorithm_is_rejected(sample):
    with pytest.raises(ValueError):
        hash_file(sample, "crc32")


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        hash_file(tmp_path / "absent", HashAlgorithm.MD5)


def test_integrity_matches(sample):
    good = Integrity(HashAlgorithm.SHA256, hash_file(sample, HashAlgorithm.SHA256))
    bad = Integrity(HashAlgorithm.SHA256, "0" * 64)
    assert good.matches(sample) is True
    assert bad.matches(sample) is False
    assert bad.digest(sample) == good.value


def test_integrity_coerces_algorithm_name():
    check = Integrity("sha512", "ff")
    assert check.algorithm is HashAlgorithm.SHA512
    assert check.value == "ff"


def test_download_item_defaults_and_path():
    item = DownloadItem("https://example.com/f.zip", "local/f.zip")
    assert item.integrity is None
    assert item.target.name == "f.zip"
    assert item.target.parent.name == "local"


def test_download_item_keeps_integrity():
    check = Integrity(HashAlgorithm.SHA256, "ab")
    item = DownloadItem("https://example.com/f.zip", "f.zip", check)
    assert item.integrity == check