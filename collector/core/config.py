from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parent.parent.parent


class RunConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000

class ApiPrefixConfig(BaseModel):
    prefix: str = "/api"

class DatabaseConfig(BaseModel):
    url: str
    echo: bool = False
    echo_pool: bool = False
    max_overflow: int = 10
    pool_size: int = 50


class RedisConfig(BaseModel):
    url: str = "redis://redis:6379"


class SitesConfig(BaseModel):
    cache_ttl_seconds: float = 60  # how long a resolved site is served from memory
    negative_cache_ttl_seconds: float = 10  # same, for unknown site keys
    cache_max_entries: int = 10_000


class TempSitesConfig(BaseModel):
    event_cap: int = 50  # events retained per temp site


class InternalApiConfig(BaseModel):
    api_token: str = Field(...)
    recent_events_rate_limit: int = 30
    recent_events_rate_window_seconds: int = 60


class MaintenanceConfig(BaseModel):
    sweep_interval_seconds: int = 0  # 0 = sweep only when the scheduler calls the endpoint


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: Path | None = BASE_DIR / "logs" / "collector.log"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter='__',
        env_prefix="APP_CONFIG__",
    )
    run: RunConfig = RunConfig()
    api: ApiPrefixConfig = ApiPrefixConfig()
    db: DatabaseConfig
    redis: RedisConfig = RedisConfig()
    sites: SitesConfig = SitesConfig()
    temp: TempSitesConfig = TempSitesConfig()
    internal: InternalApiConfig
    maintenance: MaintenanceConfig = MaintenanceConfig()
    logging: LoggingConfig = LoggingConfig()

settings = Settings()
