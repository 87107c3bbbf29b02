"""
Configuration using Pydantic settings.

Settings are loaded from ``QINIU_``-prefixed environment variables or a
``.env`` file. Mock mode runs the in-memory client and needs no
credentials.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..infrastructure.qiniu.config import QiniuConfig


class Settings(BaseSettings):
    """
    Qiniu object client settings loaded from environment variables.

    Every field maps to ``QINIU_<FIELD>``, e.g. ``QINIU_ACCESS_KEY``.
    """

    url: str = Field(
        default="",
        description="Base domain objects are read from, e.g. https://cdn.example.com"
    )
    access_key: str = Field(
        default="",
        description="Qiniu access key"
    )
    secret_key: str = Field(
        default="",
        description="Qiniu secret key"
    )
    bucket: str = Field(
        default="",
        description="Bucket chunks are stored in"
    )
    region: str = Field(
        default="",
        description="Kodo region id (z0, z1, z2, na0, as0, cn-east-2). Empty or unknown means z0."
    )
    flag: str = Field(
        default="",
        description="Comma-separated access keywords: https, cdn, private"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Default per-request timeout in seconds"
    )
    mock_mode: bool = Field(
        default=False,
        description="Use the in-memory client instead of a real bucket."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_prefix="QINIU_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def validate_required_fields(self) -> list[str]:
        """
        Return the environment variables that must be set but are not.

        Nothing is required in mock mode.
        """
        if self.mock_mode:
            return []

        missing = []
        if not self.url:
            missing.append("QINIU_URL")
        if not self.access_key:
            missing.append("QINIU_ACCESS_KEY")
        if not self.secret_key:
            missing.append("QINIU_SECRET_KEY")
        if not self.bucket:
            missing.append("QINIU_BUCKET")
        return missing

    def to_qiniu_config(self) -> QiniuConfig:
        return QiniuConfig(
            url=self.url,
            access_key=self.access_key,
            secret_key=self.secret_key,
            bucket=self.bucket,
            region=self.region,
            flag=self.flag,
            timeout_seconds=self.timeout_seconds,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once per process. Tests can call
    ``get_settings.cache_clear()`` to reload.
    """
    return Settings()
