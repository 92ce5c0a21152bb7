"""Service configuration loaded from the environment."""
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VERSION = "0.1.0"


class Settings(BaseSettings):
    """
    Gateway settings.

    Every field can be overridden with a CMDGATE_ prefixed environment
    variable, e.g. CMDGATE_COMMANDS_FILE=/etc/cmdgate/commands.json.
    """
    model_config = SettingsConfigDict(env_prefix="CMDGATE_", env_file=".env", extra="ignore", validate_default=True)

    commands_file: Path = Path("commands.json")
    logs_dir: Path = Path("logs")

    # Used for binding and display only
    host: str = "127.0.0.1"
    port: int = 3000

    environment: str = "development"
    watch_config: bool = True
    log_level: str = "INFO"

    @field_validator("commands_file", "logs_dir")
    @classmethod
    def resolve_path(cls, v: Path) -> Path:
        return v.expanduser().resolve()

    @property
    def watcher_enabled(self) -> bool:
        """The commands file is only watched outside production."""
        return self.watch_config and self.environment != "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
