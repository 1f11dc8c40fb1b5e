"""
catmaid_connector_viewer.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for the cache, client and API layers.
- Hide secrets from repr/logging (e.g., the CATMAID API token).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Single settings object injected across layers.
    Defaults are safe for a local CATMAID instance.
    """

    model_config = SettingsConfigDict(env_prefix="CCV_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "catmaid-connector-viewer"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8090

    # CATMAID backend
    catmaid_base_url: str = "http://localhost:8000"
    project_id: int = 1
    api_token: str | None = Field(default=None, repr=False)
    request_timeout_seconds: float = 30.0

    # Cache behaviour. Arbor and name data share the TTL but keep separate timestamps.
    cache_ttl_seconds: float = Field(default=5 * 60, gt=0)

    # Viewer defaults
    default_sort_fn: str = "depthProportionSort"
    default_relation: str = "presynaptic_to"

    # LC_COLLATE for skeleton name sorting; "" takes it from the environment, None leaves
    # the process locale untouched.
    collation_locale: str | None = ""


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Sort function and relation names are validated where they are used (cache layer),
# so a bad env value fails at startup with a domain error rather than a schema error.
