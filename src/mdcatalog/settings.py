"""
mdcatalog.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (e.g., JWT secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_schema_locations() -> dict[str, str]:
    # Mirrors the schemaLocation entries shipped with the standard schema plugins.
    return {
        "iso19139": (
            "http://www.isotc211.org/2005/gmd "
            "http://schemas.opengis.net/csw/2.0.2/profiles/apiso/1.0.0/apiso.xsd"
        ),
        "iso19115-3.2018": (
            "http://standards.iso.org/iso/19115/-3/mdb/2.0 "
            "http://standards.iso.org/iso/19115/-3/mdb/2.0/mdb.xsd"
        ),
        "dublin-core": (
            "http://www.openarchives.org/OAI/2.0/oai_dc/ "
            "http://www.openarchives.org/OAI/2.0/oai_dc.xsd"
        ),
    }


class Settings(BaseSettings):
    """
    Catalog configuration:
    - Strict env-driven configuration
    - Defaults safe for local dev
    - Single settings object injected across layers
    """

    model_config = SettingsConfigDict(env_prefix="MDC_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "mdcatalog"
    log_level: str = "INFO"
    # "json" for log shipping, "console" for a readable local terminal.
    log_format: Literal["json", "console"] = "json"

    api_host: str = "0.0.0.0"
    api_port: int = 8080
    # Proxies trusted to set X-Forwarded-For (the client IP drives intranet access).
    forwarded_allow_ips: str = "127.0.0.1"

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "mdcatalog"
    jwt_audience: str = "mdcatalog-api"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./mdcatalog.db"
    # Root of the catalog data directory (attached public/private files live below it).
    data_dir: Path = Path("./data")

    # Catalog identity, written into exported MEF info files.
    site_id: str = "00000000-0000-0000-0000-000000000000"
    site_name: str = "My catalog"

    # Access control
    intranet_networks: list[str] = Field(default_factory=lambda: ["127.0.0.0/8"])
    # When on, non-admin users may only grant privileges to groups they belong to.
    metadata_privs_user_group_only: bool = False

    # Schema id -> xsi:schemaLocation value added to exported records.
    schema_locations: dict[str, str] = Field(default_factory=_default_schema_locations)

    # MEF export
    mef_related_max_children: int = 1000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Settings are read once per process; tests build their own `Settings(...)` instances
# and pass them to `create_app` explicitly.
