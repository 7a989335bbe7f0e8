"""Settings loaded from defaults, an optional YAML file and the environment."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from skribbl_relay.common.errors import ConfigError

LOGGER = logging.getLogger("skribbl_relay.config")

DEFAULT_CFG_PATH = "configs/relay.yaml"


@dataclass(frozen=True)
class Settings:
    api_key: str = ""
    model: str = "gemini-1.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com"
    temperature: float = 0.0
    provider_max_retries: int = 2
    request_timeout: float = 30.0
    max_attempts: int = 3
    backoff_base: float = 2.0
    strict_words: bool = False
    max_body_bytes: int = 10 * 1024 * 1024
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


ENV_VARS = {
    "api_key": "GEMINI_API_KEY",
    "model": "GEMINI_MODEL",
    "base_url": "GEMINI_BASE_URL",
    "temperature": "TEMPERATURE",
    "provider_max_retries": "PROVIDER_MAX_RETRIES",
    "request_timeout": "REQUEST_TIMEOUT",
    "max_attempts": "MAX_ATTEMPTS",
    "backoff_base": "BACKOFF_BASE",
    "strict_words": "STRICT_WORDS",
    "max_body_bytes": "MAX_BODY_BYTES",
    "host": "HOST",
    "port": "PORT",
    "cors_origins": "CORS_ORIGINS",
    "log_level": "LOG_LEVEL",
}


def load_cfg(path: str) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    return data


def _coerce(name: str, kind: type, value: Any) -> Any:
    if kind is bool:
        if isinstance(value, bool):
            return value
        flag = str(value).strip().lower()
        if flag in ("1", "true", "yes", "on"):
            return True
        if flag in ("0", "false", "no", "off"):
            return False
        raise ConfigError(f"invalid boolean for {name}: {value!r}")
    if kind is list:
        if isinstance(value, list):
            return [str(v) for v in value]
        return [v.strip() for v in str(value).split(",") if v.strip()]
    if kind is int and (isinstance(value, bool) or (isinstance(value, float) and not value.is_integer())):
        raise ConfigError(f"invalid integer for {name}: {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid value for {name}: {value!r}") from e


def load_settings(cfg_path: str | None = None) -> Settings:
    """
    Build settings. Environment overrides YAML, YAML overrides defaults.

    Args:
        cfg_path: YAML file; falls back to $RELAY_CONFIG, then configs/relay.yaml.
            A missing default file is ignored, a missing explicit one is not.
    """
    load_dotenv(override=False)

    explicit = cfg_path or os.getenv("RELAY_CONFIG")
    path = explicit or DEFAULT_CFG_PATH
    raw: dict[str, Any] = {}
    if Path(path).exists():
        raw.update(load_cfg(path))
    elif explicit:
        raise ConfigError(f"config file not found: {path}")

    for name, env in ENV_VARS.items():
        v = os.getenv(env)
        if v is not None and v.strip() != "":
            raw[name] = v

    kinds = {
        "temperature": float,
        "request_timeout": float,
        "backoff_base": float,
        "provider_max_retries": int,
        "max_attempts": int,
        "max_body_bytes": int,
        "port": int,
        "strict_words": bool,
        "cors_origins": list,
    }
    values: dict[str, Any] = {}
    known = {f.name for f in fields(Settings)}
    for name, value in raw.items():
        if name not in known:
            LOGGER.warning("Ignoring unknown setting %r", name)
            continue
        values[name] = _coerce(name, kinds.get(name, str), value)

    settings = Settings(**values)
    if settings.max_attempts < 1:
        raise ConfigError("max_attempts must be at least 1")
    if settings.provider_max_retries < 0:
        raise ConfigError("provider_max_retries must not be negative")
    if not settings.api_key:
        LOGGER.warning("GEMINI_API_KEY is not set; model requests will fail.")
    return settings
