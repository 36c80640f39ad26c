import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, HttpUrl, ValidationError


class Settings(BaseModel):
    supabase_url: Optional[HttpUrl] = Field(default=None, alias="SUPABASE_URL")
    supabase_key: Optional[str] = Field(default=None, alias="SUPABASE_SERVICE_KEY")
    env: str = Field(default="local", alias="APP_ENV")
    backend: Literal["supabase", "memory"] = Field(default="supabase", alias="APP_BACKEND")
    guest_cart_ttl_seconds: int = Field(default=2 * 60 * 60, alias="GUEST_CART_TTL_SECONDS", gt=0)
    guest_cart_dir: Path = Field(default=Path("data/guest_carts"), alias="GUEST_CART_DIR")
    listing_feed_max_age_seconds: float = Field(default=5.0, alias="LISTING_FEED_MAX_AGE_SECONDS", ge=0)
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


def _load_dotenv():
    # Load from repo root if present, otherwise rely on environment variables.
    root_env = Path(__file__).resolve().parents[2] / ".env"
    if root_env.exists():
        load_dotenv(root_env)
    else:
        load_dotenv()


@lru_cache()
def get_settings() -> Settings:
    _load_dotenv()
    try:
        return Settings(**os.environ)
    except ValidationError as exc:
        invalid = [str(e["loc"][0]) for e in exc.errors()]
        detail = f"Invalid environment variables: {', '.join(invalid)}"
        raise RuntimeError(detail) from exc


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
