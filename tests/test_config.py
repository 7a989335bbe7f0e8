from __future__ import annotations

from pathlib import Path

import pytest

from skribbl_relay.common.config import ENV_VARS, Settings, load_settings
from skribbl_relay.common.errors import ConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for env in ENV_VARS.values():
        monkeypatch.delenv(env, raising=False)
    monkeypatch.delenv("RELAY_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults_without_file() -> None:
    assert load_settings() == Settings()


def test_default_relay_values() -> None:
    s = Settings()
    assert (s.max_attempts, s.backoff_base, s.provider_max_retries) == (3, 2.0, 2)
    assert s.temperature == 0.0
    assert s.max_body_bytes == 10 * 1024 * 1024


def test_yaml_then_env_precedence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg = tmp_path / "relay.yaml"
    cfg.write_text("model: from-yaml\nport: 7000\nstrict_words: true\n", encoding="utf-8")
    monkeypatch.setenv("PORT", "8080")

    s = load_settings(str(cfg))
    assert s.model == "from-yaml"
    assert s.port == 8080
    assert s.strict_words is True


def test_default_file_picked_up(tmp_path: Path) -> None:
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "relay.yaml").write_text("max_attempts: 5\n", encoding="utf-8")
    assert load_settings().max_attempts == 5


def test_cors_origins_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CORS_ORIGINS", "https://skribbl.io, http://localhost:3000")
    assert load_settings().cors_origins == ["https://skribbl.io", "http://localhost:3000"]


def test_bad_number_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAX_ATTEMPTS", "three")
    with pytest.raises(ConfigError):
        load_settings()


def test_zero_attempts_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAX_ATTEMPTS", "0")
    with pytest.raises(ConfigError):
        load_settings()


def test_unknown_boolean_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STRICT_WORDS", "maybe")
    with pytest.raises(ConfigError):
        load_settings()


def test_fractional_integer_in_yaml_raises(tmp_path: Path) -> None:
    cfg = tmp_path / "relay.yaml"
    cfg.write_text("max_attempts: 3.7\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(str(cfg))


def test_whole_float_integer_in_yaml_accepted(tmp_path: Path) -> None:
    cfg = tmp_path / "relay.yaml"
    cfg.write_text("max_attempts: 4.0\nstrict_words: off\n", encoding="utf-8")
    s = load_settings(str(cfg))
    assert s.max_attempts == 4
    assert s.strict_words is False


def test_missing_explicit_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_settings(str(tmp_path / "nope.yaml"))
