"""
Configuration module for the query API service.
Handles environment variables and application settings.
"""
import os
from pathlib import Path


def _split_list(value: str) -> list:
    """Split a comma separated env value, dropping blanks"""
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    """Application configuration"""


    APP_NAME = "Event Data Query API"
    APP_VERSION = "0.1.0"
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "8100"))

    # Prefix for pagination links, e.g. "https://query.eventdata.crossref.org/"
    SERVICE_BASE = os.getenv("SERVICE_BASE", "http://localhost:8100/")
    HOMEPAGE_URL = os.getenv("HOMEPAGE_URL", "https://www.crossref.org/services/event-data")


    EVENT_BUS_BASE = os.getenv("EVENT_BUS_BASE", "http://bus.eventdata.crossref.org")
    EVENT_BUS_TIMEOUT = float(os.getenv("EVENT_BUS_TIMEOUT", "900"))
    JWT_SECRETS = _split_list(os.getenv("JWT_SECRETS", ""))


    STORE_BACKEND = os.getenv("STORE_BACKEND", "s3")
    S3_KEY = os.getenv("S3_KEY")
    S3_SECRET = os.getenv("S3_SECRET")
    S3_BUCKET_NAME = os.getenv("S3_BUCKET_NAME", "")
    S3_REGION_NAME = os.getenv("S3_REGION_NAME")
    DATA_DIR = Path(os.getenv("DATA_DIR", "./data"))


    ARTIFACT_BASE = os.getenv("ARTIFACT_BASE", "http://event-data-artifact-prod.s3.amazonaws.com")
    SOURCELIST_NAME = os.getenv("SOURCELIST_NAME", "crossref-sourcelist")
    EXCLUDE_SOURCE_IDS = _split_list(os.getenv("EXCLUDE_SOURCE_IDS", ""))


    UPLOAD_QUEUE_SIZE = int(os.getenv("UPLOAD_QUEUE_SIZE", "1024"))
    UPLOAD_WORKERS = int(os.getenv("UPLOAD_WORKERS", "10"))


    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def ensure_data_dir(cls):
        """Ensure data directory exists"""
        cls.DATA_DIR.mkdir(parents=True, exist_ok=True)
