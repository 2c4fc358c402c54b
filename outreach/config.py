from __future__ import annotations

from pathlib import Path
from typing import Any, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


STORE_BACKENDS = ("memory", "sql", "sheets")


def _split_origins(raw: Any) -> List[str]:
    """
    Normalize CORS allow origins from env.

    Supports:
      - list[str] (already parsed)
      - "*"
      - comma-separated string: "https://a.com, https://b.com"
    """
    if raw is None:
        return ["*"]

    if isinstance(raw, list):
        items = [str(x).strip() for x in raw]
        items = [x for x in items if x]
        return items or ["*"]

    s = str(raw).strip()
    if not s or s == "*":
        return ["*"]

    parts = [p.strip() for p in s.split(",")]
    parts = [p for p in parts if p]
    return parts or ["*"]


def _norm_private_key(raw: Any) -> str:
    """
    Service-account keys usually arrive through env vars with escaped newlines
    and sometimes wrapped in quotes.
    """
    s = ("" if raw is None else str(raw)).strip()
    if not s:
        return ""
    s = s.replace("\\n", "\n")
    if len(s) >= 2 and s[0] == '"' and s[-1] == '"':
        s = s[1:-1]
    return s


class Settings(BaseSettings):
    """
    Central app settings.

    - Keeps env var names stable via aliases
    - Normalizes user-provided values (CORS, log level, DB URL, sheet key)
    - Provides a single resolved DB URL source of truth for the SQL store
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # App identity
    env: str = Field(default="local", alias="APP_ENV")
    app_name: str = Field(default="outreach-desk", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Server runtime (uvicorn)
    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"], alias="CORS_ALLOW_ORIGINS")
    public_api_base: str = Field(default="", alias="PUBLIC_API_BASE")

    # Record store backend: memory | sql | sheets
    store_backend: str = Field(default="sql", alias="STORE_BACKEND")

    # SQL backend
    database_url: str = Field(default="", alias="DATABASE_URL")
    db_path: str = Field(default="./data/outreach.sqlite", alias="DB_PATH")

    # Google Sheets backend
    sheets_spreadsheet_id: str = Field(default="", alias="GOOGLE_SHEETS_SPREADSHEET_ID")
    sheets_client_email: str = Field(default="", alias="GOOGLE_SHEETS_CLIENT_EMAIL")
    sheets_private_key: str = Field(default="", alias="GOOGLE_SHEETS_PRIVATE_KEY")
    sheets_credentials_file: str = Field(default="", alias="GOOGLE_SHEETS_CREDENTIALS_FILE")

    # Allocation / queue behavior
    allocation_default_batch: int = Field(default=5, alias="ALLOCATION_DEFAULT_BATCH")
    queue_page_size: int = Field(default=5, alias="QUEUE_PAGE_SIZE")
    write_fanout_workers: int = Field(default=8, alias="WRITE_FANOUT_WORKERS")

    # Event details substituted into message templates
    event_date: str = Field(default="10 de febrero", alias="EVENT_DATE")
    event_time: str = Field(default="5:00 pm", alias="EVENT_TIME")
    event_place: str = Field(default="Auditorio El Pacto", alias="EVENT_PLACE")
    event_address: str = Field(default="Calle 63 # 36 26", alias="EVENT_ADDRESS")

    # -------------------------
    # Validators / normalizers
    # -------------------------

    @field_validator("log_level", mode="before")
    @classmethod
    def _norm_log_level(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip().upper()
        return s or "INFO"

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _norm_cors_allow_origins(cls, v: Any) -> list[str]:
        return _split_origins(v)

    @field_validator("host", mode="before")
    @classmethod
    def _norm_host(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip()
        return s or "127.0.0.1"

    @field_validator("public_api_base", mode="before")
    @classmethod
    def _norm_public_api_base(cls, v: Any) -> str:
        return ("" if v is None else str(v)).strip().rstrip("/")

    @field_validator("store_backend", mode="before")
    @classmethod
    def _norm_store_backend(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip().lower()
        if s not in STORE_BACKENDS:
            return "sql"
        return s

    @field_validator("database_url", "sheets_spreadsheet_id", "sheets_client_email", mode="before")
    @classmethod
    def _norm_str(cls, v: Any) -> str:
        return ("" if v is None else str(v)).strip()

    @field_validator("sheets_private_key", mode="before")
    @classmethod
    def _norm_sheets_private_key(cls, v: Any) -> str:
        return _norm_private_key(v)

    @field_validator("db_path", mode="before")
    @classmethod
    def _norm_db_path(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip()
        return s or "./data/outreach.sqlite"

    @field_validator("allocation_default_batch", "queue_page_size", "write_fanout_workers", mode="after")
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        return v if v >= 1 else 1

    # -------------------------
    # Derived helpers
    # -------------------------

    @property
    def is_prod(self) -> bool:
        return str(self.env).strip().lower() in ("prod", "production")

    @property
    def resolved_database_url(self) -> str:
        """
        Priority:
        1) DATABASE_URL if provided
        2) Build sqlite:/// URL from DB_PATH
        """
        if self.database_url:
            return self.database_url

        path = (self.db_path or "").strip() or "./data/outreach.sqlite"

        if path.startswith("sqlite:"):
            return path

        p = Path(path)
        if not p.is_absolute():
            if str(p).startswith("./"):
                return f"sqlite:///{p.as_posix()}"
            return f"sqlite:///./{p.as_posix()}"

        # Absolute path needs 4 slashes after scheme (sqlite:////abs/path)
        return f"sqlite:////{p.as_posix().lstrip('/')}"


settings = Settings()
