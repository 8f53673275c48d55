import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional


class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False
    LOG_LEVEL: str = "INFO"

    # Document store
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None

    # Auth
    MIN_PASSWORD_LENGTH: int = 6
    BCRYPT_ROUNDS: int = 12

    # Habits
    DEFAULT_HABIT_POINTS: int = 10

    # HTTP surface
    CORS_ORIGINS: str = "http://localhost:3000"  # comma-separated

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()


def cors_origins(settings_obj: Optional[Settings] = None) -> list[str]:
    cfg = settings_obj or settings
    return [o.strip() for o in cfg.CORS_ORIGINS.split(",") if o.strip()]


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate required configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    Secrets are not logged, only missing keys.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("ecotrack")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    problems = []
    if (getattr(cfg, "ENV", "development") or "").lower() == "production" and not getattr(cfg, "DATABASE_URL", None):
        problems.append("DATABASE_URL")
    if getattr(cfg, "MIN_PASSWORD_LENGTH", 6) < 6:
        problems.append("MIN_PASSWORD_LENGTH")
    if getattr(cfg, "DEFAULT_HABIT_POINTS", 10) <= 0:
        problems.append("DEFAULT_HABIT_POINTS")

    if problems:
        message = f"Missing or invalid configuration: {', '.join(problems)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
