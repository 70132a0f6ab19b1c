import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    """Application settings, overridable through environment variables."""

    project_name: str = "Event Registration API"
    database_url: str = "sqlite:///./events.db"
    redis_url: str = "redis://localhost:6379/0"
    log_level: str = "INFO"

    # 100 requests per 15 minutes per client address
    rate_limit_max: int = 100
    rate_limit_window_seconds: int = 15 * 60
    # defaults to redis_url; "memory://" keeps counters in process
    rate_limit_storage_uri: str | None = None

    # per-event registration lock, in seconds
    lock_timeout: int = 10
    lock_blocking_timeout: int = 5

    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            project_name=os.getenv("PROJECT_NAME", cls.project_name),
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            redis_url=os.getenv("REDIS_URL", cls.redis_url),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            rate_limit_max=int(os.getenv("RATE_LIMIT_MAX", str(cls.rate_limit_max))),
            rate_limit_window_seconds=int(
                os.getenv("RATE_LIMIT_WINDOW_SECONDS", str(cls.rate_limit_window_seconds))
            ),
            rate_limit_storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI", cls.rate_limit_storage_uri),
            lock_timeout=int(os.getenv("LOCK_TIMEOUT", str(cls.lock_timeout))),
            lock_blocking_timeout=int(
                os.getenv("LOCK_BLOCKING_TIMEOUT", str(cls.lock_blocking_timeout))
            ),
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", str(cls.port))),
        )
