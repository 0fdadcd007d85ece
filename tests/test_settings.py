from pathlib import Path

import pytest

from keyword_categorizer.core import settings


def test_read_config_file(tmp_path: Path) -> None:
    config = tmp_path / "config.yaml"
    config.write_text(
        "# matcher settings\n"
        "KEYWORD_THRESHOLD: 0.6\n"
        "LOG_LEVEL: 'DEBUG'\n"
        "DATA_DIR: /data # persisted volume\n"
        "EMPTY:\n"
        "not a pair\n",
        encoding="utf-8",
    )

    assert settings.read_config_file(str(config)) == {
        "KEYWORD_THRESHOLD": "0.6",
        "LOG_LEVEL": "DEBUG",
        "DATA_DIR": "/data",
    }
    assert settings.read_config_file(str(tmp_path / "missing.yaml")) == {}
    assert settings.read_config_file(None) == {}


@pytest.mark.parametrize("raw,expected", [
    (None, 0.5),
    ("0.7", 0.7),
    ("abc", 0.5),
    ("1.5", 0.5),
    ("-0.1", 0.5),
])
def test_get_env_float(monkeypatch: pytest.MonkeyPatch, raw, expected) -> None:
    if raw is None:
        monkeypatch.delenv("KEYWORD_THRESHOLD", raising=False)
    else:
        monkeypatch.setenv("KEYWORD_THRESHOLD", raw)
    assert settings.keyword_threshold() == expected


def test_get_env_int(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MIN_KEYWORD_LENGTH", "4")
    assert settings.min_keyword_length() == 4
    monkeypatch.setenv("MIN_KEYWORD_LENGTH", "0")
    assert settings.min_keyword_length() == 3
    monkeypatch.setenv("MIN_KEYWORD_LENGTH", "three")
    assert settings.min_keyword_length() == 3


def test_config_file_does_not_override_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "config.yaml").write_text(
        "TFIDF_THRESHOLD: 0.8\nMIN_KEYWORD_LENGTH: 5\n", encoding="utf-8"
    )
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path))
    monkeypatch.setenv("MIN_KEYWORD_LENGTH", "2")
    # registered so the value written by load_environment is removed afterwards
    monkeypatch.setenv("TFIDF_THRESHOLD", "")
    monkeypatch.delenv("TFIDF_THRESHOLD")

    settings.load_environment()

    assert settings.get_config_path() == str(tmp_path / "config.yaml")
    assert settings.tfidf_threshold() == 0.8
    assert settings.min_keyword_length() == 2


def test_false_positives_path(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FALSE_POSITIVES_PATH", "")
    assert settings.false_positives_path() is None
    monkeypatch.setenv("FALSE_POSITIVES_PATH", "/etc/fp.json")
    assert settings.false_positives_path() == "/etc/fp.json"
