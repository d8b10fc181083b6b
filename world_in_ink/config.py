import os

from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_DEFAULT_DB_URL = "sqlite:///./world_in_ink.db"


class Settings(BaseSettings):
    app_name: str = "world_in_ink"
    env: str = "dev"
    database_url: str = "sqlite+pysqlite:///./world_in_ink.db"
    log_level: str = "INFO"

    jwt_secret: str = "dev-secret-change-me"
    jwt_exp_minutes: int = 60 * 24 * 7

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_timeout_s: float = 60.0
    chat_model: str = "gpt-4-turbo-preview"
    tts_model: str = "tts-1"
    image_model: str = "dall-e-2"
    cover_image_count: int = 4
    cover_image_size: str = "1024x1024"

    assistant_id: str = ""
    assistant_poll_interval_s: float = 1.0
    assistant_max_polls: int | None = None

    upload_dir: str = "./data/uploads"
    upload_public_base: str = "/uploads"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def _is_sqlite_memory_url(db_url: str) -> bool:
    candidate = (db_url or "").strip().lower()
    if not candidate.startswith("sqlite"):
        return False
    if ":memory:" in candidate:
        return True
    return candidate in {
        "sqlite://",
        "sqlite:///",
        "sqlite+pysqlite://",
        "sqlite+pysqlite:///",
    }


def validate_database_url(env: str, db_url: str | None) -> str:
    env_value = (env or "").strip().lower()
    if env_value != "dev":
        return db_url or ""

    if not db_url or not db_url.strip():
        return DEV_DEFAULT_DB_URL

    if _is_sqlite_memory_url(db_url):
        raise RuntimeError(
            "DATABASE_URL cannot be sqlite :memory: when ENV=dev because every connection gets an empty database. "
            f"Set DATABASE_URL={DEV_DEFAULT_DB_URL} or another file-based sqlite url."
        )
    return db_url


settings = Settings()
_raw_db_url = os.getenv("DATABASE_URL")
if settings.env == "dev":
    settings.database_url = validate_database_url(settings.env, _raw_db_url)
else:
    settings.database_url = validate_database_url(settings.env, _raw_db_url or settings.database_url)
