from pydantic_settings import BaseSettings
import logging
import os
import subprocess
from pathlib import Path
from dotenv import load_dotenv

# Determine environment before loading any dotenv files.
# Locally, ENVIRONMENT is not set, so we default to dev.
_backend_dir = Path(__file__).resolve().parent.parent
_is_production = os.environ.get("ENVIRONMENT") == "production"

if _is_production:
    load_dotenv(_backend_dir / ".env.production", override=True)
else:
    load_dotenv(_backend_dir / ".env", override=False)

_DEV_JWT_SECRET = "dev-secret-change-me"


def _get_git_version() -> str:
    """Get version from BUILD_VERSION file, git tag, or fallback."""
    # 1. Check BUILD_VERSION file (written by deploy script)
    version_file = _backend_dir / "BUILD_VERSION"
    if version_file.exists():
        v = version_file.read_text().strip()
        if v:
            return v
    # 2. Try git describe (gets latest tag like "v1.0.3")
    try:
        tag = subprocess.check_output(
            ["git", "describe", "--tags", "--abbrev=0"],
            stderr=subprocess.DEVNULL,
            cwd=str(_backend_dir),
            timeout=5,
        ).decode().strip()
        if tag:
            return tag
    except (subprocess.SubprocessError, OSError):
        logging.getLogger(__name__).debug("git describe unavailable, using default version")
    return "0.1.0"


class Settings(BaseSettings):
    APP_NAME: str = "artifact.shelf"
    SETTING_VERSION: str = _get_git_version()

    # Database settings
    # DATABASE_URL wins when set; otherwise MySQL is used if DB_HOST is set,
    # and a local SQLite file if not.
    DATABASE_URL_OVERRIDE: str | None = os.getenv("DATABASE_URL")
    DB_HOST: str | None = os.getenv("DB_HOST")
    DB_PORT: str = os.getenv("DB_PORT", "3306")
    DB_USER: str | None = os.getenv("DB_USER")
    DB_PASSWORD: str | None = os.getenv("DB_PASSWORD")
    DB_NAME: str | None = os.getenv("DB_NAME")
    SQLITE_PATH: str = os.getenv("SQLITE_PATH", "./artifacts.db")

    # Authentication settings
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", _DEV_JWT_SECRET)
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    PASSWORD_MIN_LENGTH: int = 6

    # Environment
    IS_PRODUCTION: bool = _is_production

    # CORS settings
    CORS_ORIGINS: list[str] = ["*"]  # In production, specify exact origins
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list[str] = ["*"]
    CORS_ALLOW_HEADERS: list[str] = ["*", "Authorization"]
    CORS_EXPOSE_HEADERS: list[str] = ["Authorization", "X-Request-ID"]

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = os.getenv("LOG_TO_FILE", "false").lower() == "true"
    LOG_DIR: str = "logs"
    LOG_FILENAME_PREFIX: str = "app"
    LOG_BACKUP_COUNT: int = 10
    LOG_FORMAT: str = "standard"  # Options: "standard" or "json"
    LOG_REQUEST_BODY: bool = False  # Whether to log request bodies
    LOG_RESPONSE_BODY: bool = False  # Whether to log response bodies
    LOG_SENSITIVE_FIELDS: list[str] = ["password", "token", "secret", "key", "authorization"]
    LOG_PERFORMANCE_THRESHOLD_MS: int = 500  # Log slow operations above this threshold

    # Preview runtimes loaded inside sandboxed preview documents
    PREVIEW_REACT_URL: str = "https://unpkg.com/react@18/umd/react.production.min.js"
    PREVIEW_REACT_DOM_URL: str = "https://unpkg.com/react-dom@18/umd/react-dom.production.min.js"
    PREVIEW_BABEL_URL: str = "https://unpkg.com/@babel/standalone/babel.min.js"
    PREVIEW_TAILWIND_URL: str = "https://cdn.tailwindcss.com"
    PREVIEW_MERMAID_URL: str = "https://cdn.jsdelivr.net/npm/mermaid@10/dist/mermaid.min.js"

    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        if self.DB_HOST:
            return f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        return f"sqlite+aiosqlite:///{self.SQLITE_PATH}"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = 'utf-8'
        extra = "ignore"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)

        if self.IS_PRODUCTION and self.JWT_SECRET_KEY == _DEV_JWT_SECRET:
            raise ValueError("JWT_SECRET_KEY not found in environment variables")


settings = Settings()
