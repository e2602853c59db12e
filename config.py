"""Application configuration handled via environment variables."""

# pylint: disable=invalid-name, arguments-differ

from pathlib import Path
from typing import Literal
import os

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# === Load .env and .env.local (if exists) ===
load_dotenv(dotenv_path=".env")
if Path(".env.local").exists():
    load_dotenv(dotenv_path=".env.local", override=True)

# === Dynamically detect project root ===
PROJECT_ROOT = Path(__file__).resolve().parent
FALLBACK_CACHE = PROJECT_ROOT / ".cache"


class Config(BaseSettings):  # pylint: disable=too-few-public-methods
    """Centralized application settings."""

    # === General ===
    ENVIRONMENT: str = Field("development")
    DEBUG: bool = Field(True)
    PORT: int = Field(8000)

    # === Paths ===
    DATA_ROOT: Path = Field(PROJECT_ROOT / "data")
    COLLECTIONS_PATH: Path = Field(PROJECT_ROOT / "data/collections")
    LOG_DIR: Path = Field(PROJECT_ROOT / "data/logs")

    # === Document store ===
    STORE_BACKEND: Literal["yaml", "firestore"] = Field("yaml")
    FIRESTORE_PROJECT_ID: str | None = Field(default=None)
    GOOGLE_CREDENTIALS_PATH: str | None = Field(default=None)

    # === Slug resolution ===
    STORE_ERROR_POLICY: Literal["continue", "abort"] = Field("continue")
    GENERATED_SLUG_SCAN_LIMIT: int = Field(5000, ge=0)
    SLUG_INDEX_TTL_SECONDS: int = Field(0, ge=0)

    # === MBBS listings ===
    MBBS_QUERY_LIMIT: int = Field(500, ge=1)
    MBBS_SCAN_LIMIT: int = Field(2000, ge=1)

    LISTING_PAGE_SIZE: int = Field(50, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown keys like system-provided "timezone"
    )

    def model_post_init(self, __context):  # type: ignore[override]
        """Expand user home in path settings and make sure data dirs exist."""
        self.DATA_ROOT = self.DATA_ROOT.expanduser()
        self.COLLECTIONS_PATH = self.COLLECTIONS_PATH.expanduser()
        self.LOG_DIR = self.LOG_DIR.expanduser()
        if self.GOOGLE_CREDENTIALS_PATH:
            self.GOOGLE_CREDENTIALS_PATH = str(
                Path(self.GOOGLE_CREDENTIALS_PATH).expanduser()
            )
        use_fallback = False
        try:
            self.DATA_ROOT.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            use_fallback = True
        else:
            if not os.access(self.DATA_ROOT, os.W_OK):
                use_fallback = True
        if use_fallback:
            fallback_data = FALLBACK_CACHE / "data"
            fallback_data.mkdir(parents=True, exist_ok=True)
            self.DATA_ROOT = fallback_data
            self.COLLECTIONS_PATH = fallback_data / "collections"
            self.LOG_DIR = fallback_data / "logs"
        self.COLLECTIONS_PATH.mkdir(parents=True, exist_ok=True)
        self.LOG_DIR.mkdir(parents=True, exist_ok=True)


config = Config()
