"""
Application configuration loaded from environment variables.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_FIXTURE_DIR = Path(__file__).resolve().parent.parent / "fixtures"


class Settings(BaseSettings):
    """NexusGuard access model configuration."""

    model_config = SettingsConfigDict(env_prefix="NG_", env_file=".env", extra="ignore")

    # Document store
    store_backend: Literal["memory", "sqlite"] = "memory"
    sqlite_path: str = "./data/nexusguard.db"

    # Organization provisioning
    eid_prefix: str = "NX"
    eid_max_attempts: int = 20
    owner_role_name: str = "Owner"
    creator_display_name: str = "Sovereign Admin"

    # Well-known bootstrap org, always resolvable
    bootstrap_eid: str = "NX-8820-A"
    bootstrap_fixture: str = str(_FIXTURE_DIR / "nexus_core_hub.yaml")

    # Org search
    search_min_chars: int = 2

    # Logging
    log_level: str = "info"
    log_format: Literal["json", "text"] = "json"

    # CORS
    cors_origins: list[str] = ["http://localhost:5173"]


@lru_cache
def get_settings() -> Settings:
    return Settings()
