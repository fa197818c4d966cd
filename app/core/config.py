from __future__ import annotations
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = "document-processor"
    app_host: str = "0.0.0.0"
    app_port: int = Field(default=3000, validation_alias=AliasChoices("PORT", "APP_PORT"))
    log_level: str = "INFO"

    tika_url: str = Field(
        default="http://localhost:9998",
        validation_alias=AliasChoices("TIKA_SERVER_URL", "TIKA_URL"),
    )
    # None keeps the transport unbounded; Tika calls then wait for the server indefinitely.
    tika_timeout_sec: Optional[float] = Field(default=None, gt=0.0)

    completed_dir: str = "./completed"
    uploads_dir: str = "./uploads"
    spreadsheet_header_row: bool = False


settings = Settings()
