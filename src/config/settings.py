import json
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parent.parent.parent  # путь до корня проекта


class ConfigBase(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


class AppConfig(ConfigBase):
    model_config = SettingsConfigDict(env_prefix="APP_")

    app_name: str = "school"
    environment: str = "dev"
    log_level: str = "DEBUG"
    service_name: str = "school-avatars"
    avatars_directory: str = "avatars"
    max_avatar_size: int = 300 * 1024  # 300 KiB
    upload_chunk_size: int = 64 * 1024
    enable_docs: bool = True
    cors_origins: list[str] = ["*"]
    sentry_dsn: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 8080

    @property
    def is_production(self) -> bool:
        return self.environment == "prod"

    @property
    def is_development(self) -> bool:
        return self.environment in ["dev", "local"]

    @property
    def avatars_path(self) -> Path:
        path = Path(self.avatars_directory)
        if not path.is_absolute():
            path = BASE_DIR / path
        return path

    @field_validator('cors_origins', mode='before')
    def parse_json(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        return v


class DatabaseConfig(ConfigBase):
    model_config = SettingsConfigDict(env_prefix="DB_")

    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: SecretStr = SecretStr("postgres")
    database: str = "school"
    # Полный URL (например, sqlite+aiosqlite:///./test.db) имеет приоритет над параметрами выше
    url: Optional[str] = None
    echo: bool = False

    @property
    def async_url(self) -> str:
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.database}"


class LoggingConfig(ConfigBase):
    model_config = SettingsConfigDict(env_prefix="LOG_")

    # Настройки для Syslog
    syslog_host: str = "localhost"
    syslog_port: int = 1514
    syslog_enabled: bool = False

    # GRAYLOG
    graylog_host: str = "localhost"
    graylog_port: int = 12201
    graylog_enabled: bool = False


class Config(BaseSettings):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    app: AppConfig = Field(default_factory=AppConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls) -> "Config":
        return cls()


config = Config.load()
