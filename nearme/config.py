import logging
import os
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _as_float(val: Optional[str], default: float) -> float:
    if val is None or not val.strip():
        return default
    return float(val)


def _as_int(val: Optional[str], default: int) -> int:
    if val is None or not val.strip():
        return default
    return int(val)


def _as_list(val: Optional[str], default: List[str]) -> List[str]:
    if val is None:
        return list(default)
    return [item.strip() for item in val.split(",") if item.strip()]


class Settings:
    def __init__(self) -> None:
        # Server side only; never sent to clients
        self.PLACES_API_KEY: Optional[str] = os.getenv("GOOGLE_PLACES_API_KEY") or os.getenv("PLACES_API_KEY")
        self.API_URL: str = os.getenv("API_URL", "http://localhost:3001")
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = _as_int(os.getenv("PORT"), 3001)
        self.CORS_ORIGINS: List[str] = _as_list(os.getenv("CORS_ORIGINS"), ["http://localhost:3000"])
        self.SEARCH_RADIUS_METERS: int = _as_int(os.getenv("SEARCH_RADIUS_METERS"), 1500)
        self.SEARCH_DEBOUNCE_SECONDS: float = _as_float(os.getenv("SEARCH_DEBOUNCE_SECONDS"), 0.5)
        self.UPSTREAM_TIMEOUT_SECONDS: float = _as_float(os.getenv("UPSTREAM_TIMEOUT_SECONDS"), 10.0)
        self.API_TIMEOUT_SECONDS: float = _as_float(os.getenv("API_TIMEOUT_SECONDS"), 15.0)
        self.IP_GEOLOCATION_URL: str = os.getenv("IP_GEOLOCATION_URL", "https://ipapi.co/json/")
        self.CATEGORIES_FILE: Optional[str] = os.getenv("CATEGORIES_FILE")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)
