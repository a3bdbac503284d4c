from functools import lru_cache

from dotenv import load_dotenv  # Load variables from a .env file.
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()  # Pull values from .env into process environment.


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    app_name: str = Field(default="Table REST API", alias="APP_NAME")

    database_url: str = Field(default="sqlite+aiosqlite:///./tables.db", alias="DATABASE_URL")
    sql_echo: bool = Field(default=False, alias="SQL_ECHO")

    api_secret: str = Field(default="", alias="API_SECRET")
    api_secret_file: str = Field(default="", alias="API_SECRET_FILE")

    # Rate limiting
    rate_limit_window_seconds: int = Field(default=60, gt=0, alias="RATE_LIMIT_WINDOW_SECONDS")
    rate_limit_max_requests: int = Field(default=100, gt=0, alias="RATE_LIMIT_MAX_REQUESTS")
    rate_limit_sweep_seconds: int = Field(default=300, gt=0, alias="RATE_LIMIT_SWEEP_SECONDS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @property
    def async_database_url(self) -> str:
        # Ensure we use the async driver.
        if self.database_url.startswith("sqlite://"):
            return self.database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return self.database_url


@lru_cache
def get_settings() -> Settings:
    return Settings()
