from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Application Settings
    APP_NAME: str = "DeliveryBridge API"
    APP_VERSION: str = "0.1.0"
    SERVICE_NAME: str = "deliverybridge-api"
    DEBUG: bool = False

    # Database Settings
    # DATABASE_URL wins when set; otherwise the DB_* parts are assembled
    DATABASE_URL: str = ""
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "deliverybridge"
    DB_PASSWORD: str = "deliverybridge"
    DB_NAME: str = "deliverybridge"

    # JWT Settings
    SECRET_KEY: str = "dev-secret-change-me-please"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7

    # Password hashing cost factor
    BCRYPT_ROUNDS: int = 12

    # CORS Settings
    CORS_ORIGINS: List[str] = ["*"]

    # Redis cache (platform catalog only)
    REDIS_URL: str = ""
    PLATFORM_CACHE_TTL: int = 300

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Route progress counters
    # False: completedStops / deliveredPackages only ever go up
    # True: leaving COMPLETED / DELIVERED gives the count back
    COUNTERS_DECREMENT_ON_REVERT: bool = False

    # Seed the platform catalog on startup
    SEED_PLATFORMS_ON_STARTUP: bool = True

    @property
    def SQLALCHEMY_DATABASE_URL(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @property
    def REDIS_ENABLED(self) -> bool:
        return bool(self.REDIS_URL)


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
