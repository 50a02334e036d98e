"""
Converter settings.

Values come from ``CSV_CONVERTER_*`` environment variables or a ``.env`` file.
"""
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConverterSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CSV_CONVERTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # === LOGGING ===
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)s - %(message)s"

    # === PREVIEW ===
    PAGE_SIZE: int = Field(default=10, ge=1)  # Records per preview page

    # === PARSING ===
    COERCE_NUMBERS: bool = True  # Canonical integers become numbers
    LONG_ROW_POLICY: Literal["truncate", "reject"] = "truncate"
    DELIMITER: Optional[str] = None  # Unset: sniff from the file


@lru_cache
def get_settings() -> ConverterSettings:
    return ConverterSettings()
