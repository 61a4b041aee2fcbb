# config/settings.py
import os
from pydantic_settings import BaseSettings
from typing import List

_CPU_COUNT = os.cpu_count() or 1

class Settings(BaseSettings):
    PROJECT_NAME: str = "Photoforge"

    # CORS
    ALLOWED_HOSTS: List[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    DOWNLOADER_LOG_LEVEL: str = "DEBUG"

    # Downloader
    DOWNLOADER_CONCURRENT: int = 2 * _CPU_COUNT
    DOWNLOADER_TIMEOUT: float = 10.0

    # Upstream media server, prefixed to the source path of a request
    MEDIA_UPSTREAM_URL: str = "http://localhost:8081/"

    # Assets & templates
    STATIC_ROOT: str = "static"
    TEMPLATES_DIR: str = "templates"

    # Rendering
    JPEG_QUALITY: int = 95
    CPU_WORKERS: int = min(4, _CPU_COUNT)
    PRICE_LOCALE: str = "vi"
    CURRENCY_SYMBOL: str = "đ"

    # Env
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
