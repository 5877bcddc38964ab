from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger("survey-tariff")


class Settings(BaseSettings):
    # Alternate tariff schedule (JSON); the packaged schedule is used when unset.
    schedule_path: str | None = Field(default=None, alias="TARIFF_SCHEDULE_PATH")
    currency: str = Field(default="NGN", alias="TARIFF_CURRENCY")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    allow_origins: str = Field(default="*", alias="ALLOW_ORIGINS")

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def allowed_origins(self) -> list[str]:
        origins = [o.strip() for o in (self.allow_origins or "").split(",") if o.strip()]
        return origins or ["*"]

    @property
    def logging_level(self) -> int:
        level = logging.getLevelName(self.log_level.strip().upper())
        if isinstance(level, int):
            return level
        logger.warning("Unknown LOG_LEVEL %r; using INFO", self.log_level)
        return logging.INFO


settings = Settings()
