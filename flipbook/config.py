import os
import tempfile
from typing import List, Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "local"

    postgres_user: str = "flipbook"
    postgres_password: str = ""
    postgres_db: str = "flipbook"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"
    # full SQLAlchemy URL, wins over the postgres_* parts when set
    database_url_override: Optional[str] = None

    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    # uploads from this address get a permanent flipbook
    admin_email: Optional[str] = None

    frontend_url: str = "http://localhost:5173"
    base_url: str = "http://localhost:8000"
    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    upload_dir: str = os.path.join(tempfile.gettempdir(), "flipbook_uploads")

    trial_days: int = 7
    default_extension_days: int = 30

    page_cache_max_entries: int = 50
    page_cache_ttl_seconds: int = 10 * 60
    page_cache_sweep_interval_seconds: int = 5 * 60
    page_cache_trim_fraction: float = 0.3

    retention_grace_days: int = 30
    retention_interval_seconds: int = 60 * 60

    brevo_api_key: Optional[str] = None
    mail_from: str = "no-reply@flipbook.local"
    site_name: str = "Flipbook"

    @property
    def database_url(self):
        if self.database_url_override:
            return self.database_url_override
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def pdf_dir(self):
        return os.path.join(self.upload_dir, "pdfs")

    @property
    def image_dir(self):
        return os.path.join(self.upload_dir, "images")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
