"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── TiDB (MySQL-protocol compatible) ───────────────────────────────────
    tidb_host: str = "tidb"
    tidb_port: int = 4000
    tidb_user: str = "root"
    tidb_password: str = ""
    tidb_database: str = "postboard"
    # Full SQLAlchemy URL; takes precedence over the tidb_* fields when set
    database_url: Optional[str] = None

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"mysql+aiomysql://{self.tidb_user}:{self.tidb_password}"
            f"@{self.tidb_host}:{self.tidb_port}/{self.tidb_database}"
        )

    # ── Auth ───────────────────────────────────────────────────────────────
    jwt_secret_key: str = "change-me-in-production-please-32b"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    bcrypt_rounds: int = 10
    reset_token_ttl_minutes: int = 60
    otp_digits: int = 6

    # ── Object storage (S3 or MinIO) ───────────────────────────────────────
    s3_region: str = "us-east-1"
    s3_access_key: str = "minioadmin"
    s3_secret_key: str = "minioadmin"
    s3_bucket: str = "media"
    s3_endpoint_url: Optional[str] = None   # e.g. http://minio:9000
    s3_base_url: str = ""                   # public prefix for stored keys
    s3_create_bucket: bool = False
    upload_url_ttl: int = 3600

    # ── Mail ───────────────────────────────────────────────────────────────
    mail_backend: str = "console"           # 'console' | 'smtp'
    mail_from: str = "no-reply@postboard.local"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    frontend_url: str = "http://localhost:3000"

    # ── CORS ───────────────────────────────────────────────────────────────
    # JSON list via env, e.g. CORS_ORIGINS='["https://app.example.com"]'
    cors_origins: list[str] = ["*"]

    # ── Observability ──────────────────────────────────────────────────────
    otel_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    service_name: str = "postboard-api"
    environment: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
