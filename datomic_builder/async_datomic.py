"""Async Datomic REST API client."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx

from datomic_builder.datomic import EDN_HEADERS, DatomicBase, extract_find_vars
from datomic_builder.exceptions import DatomicClientError, DatomicConnectionError
from datomic_builder.query import Query
from datomic_builder.serialization.factories import RowFactory, dict_row
from datomic_builder.transaction import Transaction

logger = logging.getLogger(__name__)


class AsyncDatabase:
    """Async wrapper around a Datomic database that delegates to the connection."""

    def __init__(self, name: str, conn: AsyncDatomic):
        self.name = name
        self.conn = conn

    def __getattr__(self, name: str) -> Callable[..., Any]:
        async def f(*args: Any, **kwargs: Any) -> Any:
            return await getattr(self.conn, name)(*args, dbname=self.name, **kwargs)

        return f


class AsyncDatomic(DatomicBase):
    """Async Datomic REST API client."""

    async def _request(
        self,
        method: str,
        url: str,
        *,
        expected_status: tuple[int, ...] = (200,),
        **kwargs: Any,
    ) -> httpx.Response:
        """Make an async HTTP request with error handling."""
        kwargs.setdefault("timeout", self.timeout)
        try:
            async with httpx.AsyncClient() as client:
                r = await client.request(method.upper(), url, **kwargs)
        except httpx.ConnectError as e:
            raise DatomicConnectionError(f"Failed to connect to {url}: {e}") from e
        except httpx.TimeoutException as e:
            raise DatomicConnectionError(f"Request to {url} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise DatomicClientError(f"Request to {url} failed: {e}") from e

        if r.status_code not in expected_status:
            logger.warning("%s %s returned HTTP status %s", method.upper(), url, r.status_code)
            raise DatomicClientError(
                f"Request failed with status {r.status_code}: {r.text}",
                status_code=r.status_code,
            )
        return r

    def db(self, dbname: str) -> AsyncDatabase:
        return AsyncDatabase(dbname.lower(), self)

    async def create_database(self, dbname: str) -> bool:
        """Create a new database; False means it already existed."""
        dbname = dbname.lower()
        r = await self._request(
            "post",
            self.data_url + self.alias + "/",
            data={"db-name": dbname},
            expected_status=(200, 201),
        )
        return self._creation_result(dbname, r.status_code)

    async def get_database_names(self) -> list[str]:
        r = await self._request("get", self.data_url + self.alias + "/", headers=EDN_HEADERS)
        return self._database_names(r.content)

    async def commit_transaction(
        self, tx: Transaction, *, dbname: str | None = None
    ) -> dict[str, Any]:
        request = self._transaction_request(tx, self._target("commit_transaction", dbname))
        url = request.pop("url")
        r = await self._request("post", url, expected_status=(201,), **request)
        return self._store_transaction(r.content)

    async def commit_regular_query(
        self,
        query: Query,
        *,
        dbname: str | None = None,
        row_factory: RowFactory[Any] | None = dict_row,
    ) -> list[Any]:
        params = self._query_params(query, self._target("commit_regular_query", dbname), raw=False)
        r = await self._request("get", self.api_url, params=params, headers=EDN_HEADERS)
        return self._project_rows(r.content, row_factory, query.get_find())

    async def commit_raw_query(
        self,
        query: Query,
        *,
        dbname: str | None = None,
        row_factory: RowFactory[Any] | None = None,
    ) -> list[Any]:
        params = self._query_params(query, dbname or self.db_name or "", raw=True)
        r = await self._request("get", self.api_url, params=params, headers=EDN_HEADERS)
        return self._project_rows(
            r.content, row_factory, extract_find_vars(query.get_raw_query() or "")
        )
