import os
from dataclasses import dataclass

from .errors import ConfigurationError


@dataclass
class Config:
    telegram_token: str
    store_url: str
    store_key: str
    store_table: str = "planner_tasks"
    store_timeout: float = 0
    api_host: str = "0.0.0.0"
    api_port: int = 0
    cors_origin: str = "*"
    webapp_url: str = ""
    init_data_max_age: int = 0


# (section, option, environment variable) for each required setting
REQUIRED = {
    "telegram_token": ("TELEGRAM", "bot_token", "TELEGRAM_BOT_TOKEN"),
    "store_url": ("STORAGE", "url", "SUPABASE_URL"),
    "store_key": ("STORAGE", "service_key", "SUPABASE_SERVICE_ROLE_KEY"),
}


def _get(config, section: str, option: str, fallback: str = "") -> str:
    """Read an option as a stripped string, tolerating missing sections."""
    if not config.has_section(section):
        return fallback
    return config[section].get(option, fallback).strip()


def _get_int(config, section: str, option: str, default: int) -> int:
    raw = _get(config, section, option)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"[{section}] {option} must be an integer, got {raw!r}")


def _get_float(config, section: str, option: str, default: float) -> float:
    raw = _get(config, section, option)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"[{section}] {option} must be a number, got {raw!r}")


def load_config(config, environ=None) -> Config:
    """Build a Config from a parsed configparser object.

    Required values fall back to environment variables. Missing ones raise
    ConfigurationError so the process never starts serving without them.
    """
    if environ is None:
        environ = os.environ

    required = {}
    missing = []
    for name, (section, option, env_var) in REQUIRED.items():
        value = _get(config, section, option) or environ.get(env_var, "").strip()
        if not value:
            missing.append(f"[{section}] {option} (or ${env_var})")
        required[name] = value
    if missing:
        raise ConfigurationError("missing required settings: " + ", ".join(missing))

    return Config(
        telegram_token=required["telegram_token"],
        store_url=required["store_url"].rstrip("/"),
        store_key=required["store_key"],
        store_table=_get(config, "STORAGE", "table") or "planner_tasks",
        store_timeout=_get_float(config, "STORAGE", "timeout", 0),
        api_host=_get(config, "API", "host") or "0.0.0.0",
        api_port=_get_int(config, "API", "port", 0),
        cors_origin=_get(config, "API", "cors_origin") or "*",
        webapp_url=_get(config, "TELEGRAM", "webapp_url"),
        init_data_max_age=_get_int(config, "API", "init_data_max_age", 0),
    )
