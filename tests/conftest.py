"""Shared pytest fixtures for tests."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from datomic_builder.datomic import Datomic


@pytest.fixture
def mock_client():
    """Mock httpx.Client usable as a context manager."""
    client = MagicMock()
    client.__enter__.return_value = client
    client.__exit__.return_value = None
    with patch("datomic_builder.datomic.httpx.Client", return_value=client):
        yield client


@pytest.fixture
def mock_async_client():
    """Mock httpx.AsyncClient usable as an async context manager."""
    client = MagicMock()
    client.request = AsyncMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    with patch("datomic_builder.async_datomic.httpx.AsyncClient", return_value=client):
        yield client


@pytest.fixture
def conn():
    """A client pointed at a local REST server with the ``dev`` alias."""
    return Datomic("http://localhost", 9998, "mem", "dev")


@pytest.fixture
def edn_file(tmp_path):
    """Write an ``.edn`` transaction file and return its path."""

    def _write(text: str, name: str = "schema.edn"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
