from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TENANT_CONFIG_DIR = Path(__file__).resolve().parents[1] / "tenant_configs"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_env: str = "dev"
    log_level: str = "info"
    log_dir: Path = Path("logs")
    tenant_config_dir: Path = DEFAULT_TENANT_CONFIG_DIR
    max_upload_mb: int = 20

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        """Accept any casing, reject names logging does not know."""

        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported LOG_LEVEL: {value}")
        return level


settings = Settings()
