"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


# (yaml section, yaml key) -> Settings field
_YAML_FIELDS: dict[tuple[str, str], str] = {
    ("server", "host"): "host",
    ("server", "port"): "port",
    ("openai", "generation_model"): "generation_model",
    ("openai", "max_retries"): "ai_max_retries",
    ("openai", "retry_delay_seconds"): "ai_retry_delay_seconds",
    ("auth", "session_expire_minutes"): "session_expire_minutes",
    ("session", "check_timeout_seconds"): "session_check_timeout_seconds",
    ("session", "safety_timeout_seconds"): "session_safety_timeout_seconds",
    ("billing", "checkout_success_url"): "checkout_success_url",
    ("billing", "checkout_cancel_url"): "checkout_cancel_url",
    ("billing", "portal_return_url"): "portal_return_url",
    ("oauth", "google_redirect_uri"): "google_redirect_uri",
    ("storage", "data_dir"): "data_dir",
}


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        for (section, key), field_name in _YAML_FIELDS.items():
            value = (data.get(section) or {}).get(key)
            if value is not None:
                flattened[field_name] = value
        return flattened


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI (empty key disables AI features)
    openai_api_key: str = Field(default="", description="OpenAI API key")
    generation_model: str = Field(default="gpt-4o-mini")
    ai_max_retries: int = Field(default=3)
    ai_retry_delay_seconds: float = Field(default=2.0)

    # Authentication
    jwt_secret: str = Field(default="hpc-club-development-secret-change-me")
    session_expire_minutes: int = Field(default=43200)

    # Session bootstrap
    session_check_timeout_seconds: float = Field(default=5.0)
    session_safety_timeout_seconds: float = Field(default=8.0)

    # Billing (Stripe)
    stripe_secret_key: str = Field(default="")
    stripe_price_pro: str = Field(default="")
    stripe_webhook_secret: str = Field(default="")
    checkout_success_url: str = Field(default="http://localhost:8000/dashboard?checkout=success")
    checkout_cancel_url: str = Field(default="http://localhost:8000/dashboard?checkout=cancel")
    portal_return_url: str = Field(default="http://localhost:8000/dashboard")

    # OAuth
    google_client_id: str = Field(default="")
    google_client_secret: str = Field(default="")
    google_redirect_uri: str = Field(
        default="http://localhost:8000/api/auth/oauth/google/callback"
    )

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)
    data_dir: Path | None = Field(default=None)

    @property
    def storage_dir(self) -> Path:
        d = self.data_dir or (self.project_root / "data")
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def tables_dir(self) -> Path:
        d = self.storage_dir / "tables"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def kv_dir(self) -> Path:
        d = self.storage_dir / "kv"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def ai_enabled(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()


def load_exam_config() -> dict:
    """Load per-exam area layout from YAML file."""
    path = _find_project_root() / "config" / "exams.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Exam config not found: {path}")
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data.get("exams", {})


def load_tutor_subjects() -> list[dict]:
    """Load tutor subject catalog from YAML file."""
    path = _find_project_root() / "config" / "tutors.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Tutor config not found: {path}")
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data.get("subjects", [])
