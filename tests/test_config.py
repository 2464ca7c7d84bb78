import json
from pathlib import Path

import pytest

from everestmod.config import load_config, load_config_file
from everestmod.exceptions import ConfigParseError, ConfigValidationError
from everestmod.models import EverestModConfig
from everestmod.models.config import DEFAULT_MAX_CONCURRENT, DEFAULT_REGISTRY_URL


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("EVERESTMOD_MODS_DIR", raising=False)
    monkeypatch.delenv("EVERESTMOD_REGISTRY_URL", raising=False)


def test_defaults():
    config = EverestModConfig.from_dict({})

    assert config.registry_url == DEFAULT_REGISTRY_URL
    assert config.max_concurrent == DEFAULT_MAX_CONCURRENT
    assert config.request_timeout is None
    assert config.mods_dir.parts[-4:] == ("steamapps", "common", "Celeste", "Mods")


def test_environment_fallback(monkeypatch, tmp_path):
    monkeypatch.setenv("EVERESTMOD_MODS_DIR", str(tmp_path))
    monkeypatch.setenv("EVERESTMOD_REGISTRY_URL", "http://mirror.invalid/update.yaml")

    config = EverestModConfig.from_dict({})

    assert config.mods_dir == tmp_path
    assert config.registry_url == "http://mirror.invalid/update.yaml"


def test_explicit_values_win_over_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("EVERESTMOD_MODS_DIR", "/elsewhere")

    config = EverestModConfig.from_dict({"mods_dir": str(tmp_path), "max_concurrent": 0})

    assert config.mods_dir == tmp_path
    assert config.max_concurrent == 0


@pytest.mark.parametrize(
    "data",
    [
        {"registry_url": "ftp://example.invalid/x.yaml"},
        {"max_concurrent": "5"},
        {"max_concurrent": True},
        {"request_timeout": 0},
        {"request_timeout": "fast"},
        {"mods_dir": 42},
    ],
)
def test_invalid_values(data):
    with pytest.raises(ConfigValidationError):
        EverestModConfig.from_dict(data)


@pytest.mark.parametrize(
    "filename, content",
    [
        ("config.toml", 'mods_dir = "{mods}"\nmax_concurrent = 3\n'),
        ("config.json", json.dumps({"mods_dir": "{mods}", "max_concurrent": 3})),
        ("config.yaml", "mods_dir: {mods}\nmax_concurrent: 3\n"),
    ],
)
def test_load_config_file_formats(tmp_path, filename, content):
    mods = tmp_path / "Mods"
    path = tmp_path / filename
    path.write_text(content.replace("{mods}", mods.as_posix()), encoding="utf-8")

    config = load_config(path)

    assert config.mods_dir == Path(mods.as_posix())
    assert config.max_concurrent == 3


def test_overrides_beat_file_and_none_is_ignored(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('mods_dir = "/from/file"\nmax_concurrent = 3\n', encoding="utf-8")

    config = load_config(path, mods_dir=str(tmp_path), max_concurrent=None)

    assert config.mods_dir == tmp_path
    assert config.max_concurrent == 3


def test_empty_yaml_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")

    assert load_config_file(path) == {}


@pytest.mark.parametrize(
    "filename, content",
    [
        ("config.ini", "[section]\n"),
        ("config.toml", "mods_dir = \n"),
        ("config.json", "{not json"),
        ("config.yaml", "- a\n- b\n"),
    ],
)
def test_unparseable_config(tmp_path, filename, content):
    path = tmp_path / filename
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigParseError):
        load_config_file(path)


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigParseError):
        load_config_file(tmp_path / "absent.toml")
