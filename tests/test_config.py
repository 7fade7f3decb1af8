"""Tests for client settings."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from datomic_builder.config import STORAGE_TYPES, DatomicSettings


class TestDatomicSettings:
    def test_defaults(self, monkeypatch):
        for name in ("SERVER_URL", "PORT", "STORAGE", "ALIAS", "DB_NAME"):
            monkeypatch.delenv(f"DATOMIC_{name}", raising=False)

        settings = DatomicSettings()

        assert settings.server_url == "http://localhost"
        assert settings.port == 9998
        assert settings.storage == "mem"
        assert settings.alias == "dev"
        assert settings.db_name is None
        assert settings.connect_timeout == 5.0

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("DATOMIC_PORT", "8001")
        monkeypatch.setenv("DATOMIC_STORAGE", "sql")
        monkeypatch.setenv("DATOMIC_DB_NAME", "shop")

        settings = DatomicSettings()

        assert settings.port == 8001
        assert settings.storage == "sql"
        assert settings.db_name == "shop"

    def test_unknown_storage(self):
        with pytest.raises(PydanticValidationError, match="mem, dev, sql, inf, ddb"):
            DatomicSettings(storage="disk")

    def test_empty_alias(self):
        with pytest.raises(PydanticValidationError, match="non-empty string"):
            DatomicSettings(alias="  ")

    def test_storage_types(self):
        assert STORAGE_TYPES == ("mem", "dev", "sql", "inf", "ddb")
