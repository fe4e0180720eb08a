"""
Configuration management for Python Autofix Pro.
"""

from pathlib import Path
from typing import Optional, Set

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

DEFAULT_TROUBLESHOOTING_URL = "https://github.com/python-autofix-pro/python-autofix-pro#troubleshooting"


class Settings(BaseSettings):
    """Application settings."""

    # GitHub App settings
    app_id: Optional[int] = Field(default=None, json_schema_extra={"env": "APP_ID"})
    private_key: Optional[str] = Field(default=None, json_schema_extra={"env": "PRIVATE_KEY"})
    private_key_path: Optional[str] = Field(default=None, json_schema_extra={"env": "PRIVATE_KEY_PATH"})
    webhook_secret: Optional[str] = Field(default=None, json_schema_extra={"env": "WEBHOOK_SECRET"})
    github_api_url: str = Field(default="https://api.github.com", json_schema_extra={"env": "GITHUB_API_URL"})
    git_host: str = Field(default="github.com", json_schema_extra={"env": "GIT_HOST"})

    # HTTP listener settings
    host: str = Field(default="0.0.0.0", json_schema_extra={"env": "HOST"})
    port: int = Field(default=3000, json_schema_extra={"env": "PORT"})
    webhook_path: str = Field(default="/api/webhook", json_schema_extra={"env": "WEBHOOK_PATH"})

    # User facing links
    docs_url: Optional[str] = Field(default=None, json_schema_extra={"env": "DOCS_URL"})

    # Plan settings
    pro_installation_ids: str = Field(default="", json_schema_extra={"env": "PRO_INSTALLATION_IDS"})
    plan_override: Optional[str] = Field(default=None, json_schema_extra={"env": "PLAN_OVERRIDE"})
    app_env: str = Field(default="production", json_schema_extra={"env": "APP_ENV"})

    # Subprocess bounds (seconds)
    command_timeout: int = Field(default=300, json_schema_extra={"env": "COMMAND_TIMEOUT"})
    git_timeout: int = Field(default=120, json_schema_extra={"env": "GIT_TIMEOUT"})

    # Logging settings
    log_level: str = Field(default="INFO", json_schema_extra={"env": "LOG_LEVEL"})
    log_file: Optional[str] = Field(default=None, json_schema_extra={"env": "LOG_FILE"})
    usage_log_path: Optional[str] = Field(default=None, json_schema_extra={"env": "USAGE_LOG_PATH"})

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unexpected environment variables
    )

    @property
    def troubleshooting_url(self) -> str:
        if self.docs_url:
            return f"{self.docs_url.rstrip('/')}#troubleshooting"
        return DEFAULT_TROUBLESHOOTING_URL

    def parse_pro_installation_ids(self) -> Set[int]:
        """Return the allow-list of installation ids on the Pro plan.

        Entries that are not integers are ignored.
        """
        ids: Set[int] = set()
        for raw in self.pro_installation_ids.split(","):
            value = raw.strip()
            if not value:
                continue
            try:
                ids.add(int(value))
            except ValueError:
                continue
        return ids

    def load_private_key(self) -> str:
        """Return the App private key, reading ``private_key_path`` when needed."""
        if self.private_key:
            # Platforms that cannot store multi-line values pass "\n" escapes
            return self.private_key.replace("\\n", "\n")
        if self.private_key_path:
            path = Path(self.private_key_path)
            if not path.exists():
                raise ConfigurationError(f"PRIVATE_KEY_PATH does not exist: {path}")
            return path.read_text(encoding="utf-8")
        raise ConfigurationError("PRIVATE_KEY is required.")

    def require_app_credentials(self) -> None:
        """Validate that the settings needed to serve webhooks are present."""
        if self.app_id is None:
            raise ConfigurationError("APP_ID is required.")
        self.load_private_key()
        if not self.webhook_secret:
            raise ConfigurationError("WEBHOOK_SECRET is required.")


settings = Settings()
