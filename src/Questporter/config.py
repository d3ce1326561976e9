"""Settings loader for Questporter."""

from pathlib import Path
from typing import Any

import tomllib
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# (section, key) in config.toml -> Settings field
_TOML_FIELDS: dict[tuple[str, str], str] = {
    ("app", "env"): "env",
    ("i18n", "locale"): "locale",
    ("i18n", "default_locale"): "default_locale",
    ("i18n", "override_file_extension"): "override_file_extension",
    ("host", "data_root"): "data_root",
    ("host", "module_root"): "module_root",
    ("host", "setup_url"): "setup_url",
    ("host", "request_timeout_seconds"): "world_request_timeout_seconds",
    ("logging", "enabled"): "logging_enabled",
    ("logging", "level"): "logging_level",
    ("logging", "file_path"): "logging_file_path",
    ("logging", "max_bytes"): "logging_max_bytes",
    ("logging", "backup_count"): "logging_backup_count",
}


def _handler_level(value: Any, overall: str) -> str:
    # true/false toggles a handler at the overall level; strings name a level or NONE
    if isinstance(value, bool):
        return overall if value else "NONE"
    if isinstance(value, str):
        return value.upper()
    return overall


def _toml_settings_source() -> dict[str, Any]:
    """Read config.toml from the working directory, keeping only keys it sets.

    Ranks below env and .env, so either can override a TOML value.
    """
    cfg_path = Path("config.toml")
    if not cfg_path.exists():
        return {}
    with cfg_path.open("rb") as f:
        t = tomllib.load(f)

    out: dict[str, Any] = {}
    for (section, key), name in _TOML_FIELDS.items():
        table = t.get(section) or {}
        if key in table:
            out[name] = table[key]

    log_cfg = t.get("logging") or {}
    overall = str(log_cfg.get("level", "INFO")).upper()
    if "console" in log_cfg:
        out["logging_console"] = _handler_level(log_cfg["console"], overall)
    if "to_file" in log_cfg:
        out["logging_file"] = _handler_level(log_cfg["to_file"], overall)
    return out


class Settings(BaseSettings):
    env: str = Field(default="dev")

    # --- Localization ---
    locale: str = "en"
    # Locale the bundled adventure is authored in; no overlays apply to it
    default_locale: str = "en"
    override_file_extension: str = ".html"

    # --- Host ---
    data_root: str = "."
    # Falls back to "modules/<module id>"
    module_root: str | None = None
    setup_url: str | None = None
    setup_admin_key: SecretStr | None = None
    world_request_timeout_seconds: float = 30.0

    # --- Logging ---
    logging_enabled: bool = True
    logging_level: str = "INFO"
    # Per-handler levels: INFO|DEBUG|WARNING|ERROR|CRITICAL|NONE
    logging_console: str = "INFO"
    logging_file: str = "INFO"
    logging_file_path: str = "logs/questporter.jsonl"
    logging_max_bytes: int = 5_000_000
    logging_backup_count: int = 5

    model_config = SettingsConfigDict(
        env_prefix="QUESTPORTER_",
        case_sensitive=False,
        env_file=".env",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Highest first: explicit kwargs, .env, OS env, config.toml, secrets dir
        return (
            init_settings,
            dotenv_settings,
            env_settings,
            _toml_settings_source,
            file_secret_settings,
        )

    def module_root_for(self, module_id: str) -> str:
        return (self.module_root or f"modules/{module_id}").rstrip("/")


def load_settings() -> Settings:
    return Settings()
