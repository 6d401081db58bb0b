from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file = ".env",
        env_file_encoding = "utf-8",
        extra = "ignore"
    )

    # App
    APP_NAME: str = "View Export Engine"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Delivery
    EXPORT_DIR: str = "./exports"

    # Detection limits
    MAX_ROWS_PER_BLOCK: int = 10000
    TYPE_SAMPLE_SIZE: int = 20
    DEFAULT_LOCALE: str = "en"
    DEFAULT_VIEW_NAME: str = "dashboard"

    # Export limits
    DEFAULT_MAX_ROWS_PER_SHEET: int = 100000
    CLIPBOARD_PREVIEW_ROWS: int = 20
    PDF_ROWS_PER_PAGE: int = 40


settings = Settings()
