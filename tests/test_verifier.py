from everestmod.download.verifier import ContentHasher, FileVerifier, normalize_checksum
from tests.helpers import xxh64


def test_empty_input_has_known_digest():
    assert ContentHasher().hexdigest() == "ef46db3751d8e999"


def test_streaming_matches_one_shot():
    data = bytes(range(256)) * 1000
    hasher = ContentHasher()
    for start in range(0, len(data), 777):
        hasher.update(data[start : start + 777])

    assert hasher.hexdigest() == xxh64(data)
    assert hasher.size == len(data)


def test_digest_is_16_lowercase_hex():
    digest = ContentHasher().hexdigest()
    assert len(digest) == 16
    assert digest == digest.lower()
    int(digest, 16)


async def test_calc_xxhash_covers_whole_file(tmp_path):
    data = b"celeste" * 50000
    path = tmp_path / "blob.bin"
    path.write_bytes(data)

    assert await FileVerifier.calc_xxhash(path) == xxh64(data)


def test_matches_normalizes_case_and_whitespace():
    assert FileVerifier.matches("ABCDEF0123456789", [" abcdef0123456789 "])
    assert normalize_checksum(" F00D ") == "f00d"


def test_matches_rejects_prefix():
    assert not FileVerifier.matches("abcdef01", ["abcdef0123456789"])
    assert not FileVerifier.matches("abcdef0123456789", [])
