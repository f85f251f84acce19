"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_PRONTO_BASE_URL = "https://app.prontohq.com/api/v2"
DEFAULT_INSEE_BASE_URL = "https://api.insee.fr/entreprises/sirene/V3"
DEFAULT_INSEE_TOKEN_URL = "https://api.insee.fr/token"


@dataclass(frozen=True)
class Settings:
    pronto_api_key: str
    database_url: str
    pronto_base_url: str = DEFAULT_PRONTO_BASE_URL
    insee_client_id: str = ""
    insee_client_secret: str = ""
    insee_access_token: str = ""
    insee_base_url: str = DEFAULT_INSEE_BASE_URL
    insee_token_url: str = DEFAULT_INSEE_TOKEN_URL
    google_api_key: str = ""
    list_storage_dir: str = "public/list"
    port: int = 4000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    pronto_api_key = os.getenv("PRONTO_API_KEY", "")
    database_url = os.getenv("DATABASE_URL", "")
    insee_client_id = os.getenv("INSEE_CLIENT_ID", "")
    insee_client_secret = os.getenv("INSEE_CLIENT_SECRET", "")
    google_api_key = os.getenv("GOOGLE_API_KEY", "")

    if not pronto_api_key:
        logger.warning("PRONTO_API_KEY is not configured; Pronto requests will fail.")
    if not database_url:
        logger.warning("DATABASE_URL is not set; database operations will fail.")
    if not insee_client_id or not insee_client_secret:
        logger.warning("INSEE_CLIENT_ID/INSEE_CLIENT_SECRET are not configured; registry token refresh will fail.")
    if not google_api_key:
        logger.warning("GOOGLE_API_KEY is not configured; Google Places requests will fail.")

    return Settings(
        pronto_api_key=pronto_api_key,
        database_url=database_url,
        pronto_base_url=os.getenv("PRONTO_BASE_URL", DEFAULT_PRONTO_BASE_URL).rstrip("/"),
        insee_client_id=insee_client_id,
        insee_client_secret=insee_client_secret,
        insee_access_token=os.getenv("INSEE_ACCESS_TOKEN", ""),
        insee_base_url=os.getenv("INSEE_BASE_URL", DEFAULT_INSEE_BASE_URL).rstrip("/"),
        insee_token_url=os.getenv("INSEE_TOKEN_URL", DEFAULT_INSEE_TOKEN_URL),
        google_api_key=google_api_key,
        list_storage_dir=os.getenv("LIST_STORAGE_DIR", "public/list"),
        port=int(os.getenv("PORT", "4000")),
    )
