import logging
from functools import lru_cache
from pydantic import BaseModel
import os
from dotenv import load_dotenv

load_dotenv()

log_level = os.getenv("LOG_LEVEL", "INFO")
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s :: %(levelname)s :: %(processName)s :: %(threadName)s :: %(filename)s :: %(funcName)s :: %(message)s",
)
logger = logging.getLogger(__name__)


class Settings(BaseModel):
    app_name: str = "Instagram Proxy API"
    api_prefix: str = os.getenv("API_PREFIX", "/api")

    instagram_api_key: str = os.getenv("INSTAGRAM_API_KEY", "")
    instagram_api_host: str = os.getenv("INSTAGRAM_API_HOST", "instagram120.p.rapidapi.com")
    instagram_api_base_url: str = os.getenv(
        "INSTAGRAM_API_BASE_URL", "https://instagram120.p.rapidapi.com"
    )
    instagram_api_provider: str = os.getenv("INSTAGRAM_API_PROVIDER", "instagram120")

    upstream_timeout: float = float(os.getenv("UPSTREAM_TIMEOUT", "30"))
    image_fetch_timeout: float = float(os.getenv("IMAGE_FETCH_TIMEOUT", "10"))

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    environment: str = os.getenv("ENVIRONMENT", "local")


@lru_cache
def get_settings() -> Settings:
    return Settings()
