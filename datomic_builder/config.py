"""
Client configuration.

Settings are read from ``DATOMIC_*`` environment variables, e.g.
``DATOMIC_SERVER_URL=http://localhost DATOMIC_PORT=9998 DATOMIC_ALIAS=dev``.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

STORAGE_TYPES = ("mem", "dev", "sql", "inf", "ddb")


class DatomicSettings(BaseSettings):
    """Connection settings for a Datomic REST server."""

    server_url: str = Field(default="http://localhost")
    port: int = Field(default=9998)
    storage: str = Field(default="mem")
    alias: str = Field(default="dev", description="Storage alias the REST server was started with")
    db_name: str | None = Field(default=None)

    # Seconds
    connect_timeout: float = Field(default=5.0)
    timeout: float = Field(default=30.0)

    model_config = {"env_prefix": "DATOMIC_"}

    @field_validator("server_url", "alias")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must be a non-empty string")
        return value

    @field_validator("storage")
    @classmethod
    def _known_storage(cls, value: str) -> str:
        if value not in STORAGE_TYPES:
            raise ValueError("must be one of the following [" + ", ".join(STORAGE_TYPES) + "]")
        return value
