import pytest

from everestmod.exceptions import (
    ArchiveError,
    ConfigParseError,
    DownloadError,
    DownloadNetworkError,
    EverestModError,
    IntegrityError,
    LocalModError,
    NetworkError,
    RegistryFetchError,
)


def test_str_includes_code():
    assert str(EverestModError("boom")) == "[E000] boom"
    assert str(ConfigParseError("bad file")) == "[E101] bad file"


def test_explicit_code_overrides_default():
    assert EverestModError("boom", code="E999").code == "E999"


def test_to_dict():
    error = ArchiveError("corrupt", context={"archive": "a.zip"})

    assert error.to_dict() == {
        "error": True,
        "code": "E402",
        "message": "corrupt",
        "context": {"archive": "a.zip"},
        "type": "ArchiveError",
    }


@pytest.mark.parametrize(
    "error, parents",
    [
        (DownloadNetworkError("x"), (DownloadError, NetworkError)),
        (RegistryFetchError("x"), (NetworkError,)),
        (ArchiveError("x"), (LocalModError,)),
    ],
)
def test_hierarchy(error, parents):
    assert isinstance(error, EverestModError)
    for parent in parents:
        assert isinstance(error, parent)


def test_download_network_error_code():
    assert DownloadNetworkError("x").code == "E301"


def test_integrity_error_keeps_both_sides():
    error = IntegrityError(
        "mismatch", computed="ffff", expected={"bbbb", "aaaa"}, context={"mod": "A"}
    )

    assert isinstance(error, DownloadError)
    assert error.code == "E302"
    assert error.expected == ["aaaa", "bbbb"]
    assert error.context == {"mod": "A", "computed": "ffff", "expected": ["aaaa", "bbbb"]}
