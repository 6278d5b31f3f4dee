"""Configuration settings for the application."""
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

TEST_ENV = "test"


@dataclass
class CacheSettings:
    default_ttl: int = int(os.getenv("CACHE_DEFAULT_TTL", 300))
    # Seconds between background sweeps of expired entries
    sweep_interval: float = float(os.getenv("CACHE_SWEEP_INTERVAL", 300))


@dataclass
class Settings:
    env: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    cache: CacheSettings = field(default_factory=CacheSettings)

    @property
    def is_test(self) -> bool:
        return self.env == TEST_ENV


settings = Settings()
