from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Fetchr Core"
    workspace_dir: str = "./workspace"

    # None lets the transport wait indefinitely
    request_timeout: Optional[float] = None

    history_limit: int = 100

    log_level: str = "INFO"
    log_file: Optional[str] = None

    cors_origins: str = "*"

    model_config = SettingsConfigDict(env_prefix="FETCHR_", env_file=".env", extra="ignore")


settings = Settings()
