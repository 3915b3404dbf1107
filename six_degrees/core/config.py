"""
Application settings.

Values come from `SIX_DEGREES_*` environment variables and fall back to the defaults below.
"""

import os
from functools import lru_cache
from typing import Mapping, Optional, Self

from pydantic import BaseModel, Field, field_validator

from six_degrees.core.exceptions import InvalidRequestError
from six_degrees.core.shared_types import ScoringConvention

ENV_PREFIX = "SIX_DEGREES_"


class Settings(BaseModel):
    database_url: str = "sqlite:///six_degrees.db"
    database_echo: bool = False
    log_level: str = "INFO"
    log_json: bool = False
    scoring: ScoringConvention = ScoringConvention.EFFICIENCY
    leaderboard_limit: int = Field(default=10, ge=1)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise InvalidRequestError(f"Unknown log level: {value!r}")
        return level

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Self:
        """Collect every known field from the environment (prefixed, upper case)."""
        environ = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for name in cls.model_fields:
            key = f"{ENV_PREFIX}{name.upper()}"
            if key in environ:
                values[name] = environ[key]
        return cls.model_validate(values)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
