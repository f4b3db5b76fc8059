from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = Field("billed-expense-reports", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Remote bill store
    store_backend: str = Field("memory", alias="STORE_BACKEND")  # memory | sqlite | http
    store_base_url: str = Field("http://127.0.0.1:5678", alias="STORE_BASE_URL")
    store_api_key: str | None = Field(default=None, alias="STORE_API_KEY")
    store_timeout_seconds: float = Field(10.0, alias="STORE_TIMEOUT_SECONDS")

    # SQLite backend
    sqlite_db_path: str = Field("bills.db", alias="SQLITE_DB_PATH")
    attachments_dir: str = Field("attachments", alias="ATTACHMENTS_DIR")

    # Attachment gate (comma-separated, case-insensitive)
    allowed_attachment_extensions: str = Field("jpg,jpeg,png", alias="ALLOWED_ATTACHMENT_EXTENSIONS")

    # CORS allowed origins (comma-separated list for production deployment)
    cors_origins: str = Field("http://localhost:8080,http://127.0.0.1:8080", alias="CORS_ORIGINS")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

settings = Settings()
