from functools import lru_cache
import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv(override=False)


def _env(name: str, default: str = ""):
    return Field(default_factory=lambda: os.getenv(name, default))


class Settings(BaseModel):
    # Values come from the environment as strings and are coerced on construction.
    model_config = ConfigDict(validate_default=True)

    google_maps_api_key: str = _env("GOOGLE_MAPS_API_KEY")
    places_language_code: str = _env("PLACES_LANGUAGE_CODE")
    places_region_code: str = _env("PLACES_REGION_CODE")
    places_timeout_s: float = _env("PLACES_TIMEOUT_S", "10")
    places_max_retries: int = _env("PLACES_MAX_RETRIES", "2")
    details_concurrency: int = _env("DETAILS_CONCURRENCY", "8")

    visited_backend: str = _env("VISITED_BACKEND", "supabase")
    supabase_url: str = _env("SUPABASE_URL")
    supabase_service_role_key: str = _env("SUPABASE_SERVICE_ROLE_KEY")

    app_username: str = _env("APP_USERNAME")
    app_password: str = _env("APP_PASSWORD")
    app_session_secret: str = _env("APP_SESSION_SECRET")


@lru_cache
def get_settings() -> Settings:
    return Settings()
