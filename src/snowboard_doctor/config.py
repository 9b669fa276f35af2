"""
Settings and the on-disk config file.

Values resolve in order: built-in defaults, ~/.snowboard-doctor/config.json,
SNOWBOARD_DOCTOR_* environment variables, then explicit arguments.
"""

import json
from pathlib import Path
from typing import Any, Optional

from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from snowboard_doctor.errors import ConfigError

CONFIG_FILE = Path.home() / ".snowboard-doctor" / "config.json"

DEFAULT_WEBHOOK_URL = "https://n8n.kloudflake.com/webhook-test/43cb43fe-ad50-436f-8f1e-2abcbc512600"
DEFAULT_IP_ECHO_URL = "https://api.ipify.org?format=json"
DEFAULT_REDIRECT_URL = "http://localhost:3000/"


def load_config(path: Optional[Path] = None) -> dict[str, Any]:
    try:
        data = json.loads((path or CONFIG_FILE).read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(cfg: dict[str, Any], path: Optional[Path] = None) -> None:
    target = path or CONFIG_FILE
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(cfg, indent=2))


class ConfigFileSettingsSource(PydanticBaseSettingsSource):
    """Field values from the CLI config file. Other keys (the stored session) are skipped."""

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        return load_config().get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return {k: v for k, v in load_config().items() if k in self.settings_cls.model_fields}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SNOWBOARD_DOCTOR_",
        env_ignore_empty=True,
        extra="ignore",
    )

    webhook_url: str = DEFAULT_WEBHOOK_URL
    webhook_username: str = "snowboard-doctor"
    webhook_password: str = "snowboard-doctor"
    supabase_url: str = ""
    supabase_anon_key: str = ""
    redirect_url: str = DEFAULT_REDIRECT_URL
    ip_echo_url: str = DEFAULT_IP_ECHO_URL
    resolve_public_ip: bool = True

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, env_settings, ConfigFileSettingsSource(settings_cls)

    @property
    def has_identity_provider(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)


def load_settings(**overrides: Any) -> Settings:
    """Build settings; `None` overrides fall through to the lower layers."""
    settings = Settings(**{k: v for k, v in overrides.items() if v is not None})
    if not settings.webhook_url:
        raise ConfigError("webhook_url is not configured")
    return settings
