from __future__ import annotations

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

load_dotenv()

MIN_SECRET_LENGTH = 32


class Settings(BaseModel):
    # never echo the secret back in validation errors
    model_config = ConfigDict(hide_input_in_errors=True)

    secret: SecretStr
    base_url: str = "http://localhost:8000"
    password_reset_ttl: int = Field(default=3600, gt=0)
    email_verification_ttl: int = Field(default=86400, gt=0)
    download_ttl: int = Field(default=3600, gt=0)
    log_level: str = "INFO"

    @field_validator("secret")
    @classmethod
    def _secret_long_enough(cls, v: SecretStr) -> SecretStr:
        if len(v.get_secret_value()) < MIN_SECRET_LENGTH:
            raise ValueError(f"must be at least {MIN_SECRET_LENGTH} characters")
        return v

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @classmethod
    def from_env(cls) -> "Settings":
        try:
            return cls(
                secret=os.getenv("SIGNED_URL_SECRET") or os.getenv("SECRET_KEY") or "",
                base_url=os.getenv("PUBLIC_BASE_URL") or os.getenv("BASE_URL") or "http://localhost:8000",
                password_reset_ttl=os.getenv("PASSWORD_RESET_TTL", "3600"),
                email_verification_ttl=os.getenv("EMAIL_VERIFICATION_TTL", "86400"),
                download_ttl=os.getenv("DOWNLOAD_TTL", "3600"),
                log_level=os.getenv("LOG_LEVEL", "INFO"),
            )
        except ValidationError as e:
            raise RuntimeError(f"invalid signed URL settings: {e}") from e


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
