from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    XKCD_BASE_URL: str = "https://xkcd.com"

    CACHE_TTL_SECONDS: float = 5 * 60

    SEARCH_WINDOW: int = 100
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 50
    MAX_QUERY_LENGTH: int = 100

    UPSTREAM_TIMEOUT_SECONDS: float = 10.0
    UPSTREAM_MAX_CONNECTIONS: int = 20

    # shared by every /api route, per client address
    API_RATE_LIMIT: str = "100/15 minutes"

    LOG_LEVEL: str = "INFO"

    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

settings = Settings()
