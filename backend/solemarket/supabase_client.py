from functools import lru_cache

from supabase import Client, create_client

from .config import get_settings


@lru_cache()
def get_supabase() -> Client:
    settings = get_settings()
    if settings.supabase_url is None or not settings.supabase_key:
        raise RuntimeError(
            "SUPABASE_URL and SUPABASE_SERVICE_KEY must be set when APP_BACKEND=supabase. "
            "Use APP_BACKEND=memory to run without Supabase."
        )
    url = str(settings.supabase_url)
    key = settings.supabase_key

    if "your-project.supabase.co" in url:
        raise RuntimeError(
            "SUPABASE_URL in .env is still the placeholder (your-project). "
            "Fill in your real project URL and service key."
        )
    return create_client(url, key)
