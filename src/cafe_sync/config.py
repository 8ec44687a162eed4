from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # remote data service (server side)
    DATABASE_URL: str = "sqlite+aiosqlite:///./cafe_sync.db"
    API_KEY: str = ""

    # push channel
    REDIS_URL: str = "redis://redis:6379/0"
    EVENTS_ENABLED: bool = True
    REALTIME_CHANNEL_PREFIX: str = "realtime"

    # terminal (client side)
    REMOTE_URL: str = ""
    REMOTE_API_KEY: str = ""
    REMOTE_TIMEOUT: float = 10.0
    SNAPSHOT_PATH: str = "data/cafe_sync.json"
    RECONCILE_INTERVAL: float = 30.0
    REFETCH_ON_PUSH: bool = False
    URGENT_AFTER_SECONDS: int = 180
    QUEUE_PAGE_SIZE: int = 12

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    class Config:
        env_file = ".env"

settings = Settings()
