from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "points-backoffice")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "Points Back-Office")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = os.getenv("LOG_JSON", "1") == "1"
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/backoffice_dev")
    # 0 disables; applied per connection on PostgreSQL only
    db_statement_timeout_ms: int = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "5000"))

    # Withdrawal policy (front-end apply)
    withdraw_enabled: bool = os.getenv("WITHDRAW_ENABLED", "1") == "1"
    withdraw_min_money: float = float(os.getenv("WITHDRAW_MIN_MONEY", "1"))
    withdraw_points_per_money: float = float(os.getenv("WITHDRAW_POINTS_PER_MONEY", "100"))

    # Voucher batches
    voucher_max_batch: int = int(os.getenv("VOUCHER_MAX_BATCH", "9999"))
    voucher_max_attempts: int = int(os.getenv("VOUCHER_MAX_ATTEMPTS", "10"))
    voucher_code_length: int = int(os.getenv("VOUCHER_CODE_LENGTH", "16"))
    voucher_pwd_length: int = int(os.getenv("VOUCHER_PWD_LENGTH", "8"))
    voucher_export_header: str = os.getenv("VOUCHER_EXPORT_HEADER", "Card No,Password,Created At")
    export_timezone: str = os.getenv("EXPORT_TIMEZONE", "UTC")

    # Flat-file collaborator stores (domains etc.)
    settings_dir: str = os.getenv("SETTINGS_DIR", "./var/settings")

settings = Settings()
