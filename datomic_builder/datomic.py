"""Datomic REST API client."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from typing import Any

import httpx

from datomic_builder.codec import EdnCodec, default_codec
from datomic_builder.config import STORAGE_TYPES, DatomicSettings
from datomic_builder.edn.types import Keyword
from datomic_builder.exceptions import (
    DatomicClientError,
    DatomicConnectionError,
    EDNParseError,
    SequenceError,
    ValidationError,
)
from datomic_builder.query import Query
from datomic_builder.serialization.factories import RowFactory, dict_row
from datomic_builder.transaction import Transaction

logger = logging.getLogger(__name__)

EDN_HEADERS = {"Accept": "application/edn"}


def extract_find_vars(query: str) -> tuple[str, ...]:
    """
    Extract variable names from the :find clause of a query string.

    Args:
        query: The Datomic query string.

    Returns:
        A tuple of variable names, without the ``?`` prefix.

    """
    find_match = re.search(
        r":find\s+(.*?)(?:\s*:(?:in|where|with|keys|strs|syms)\s|$)",
        query,
        re.DOTALL | re.IGNORECASE,
    )
    if find_match:
        return tuple(re.findall(r"\?([\w-]+)", find_match.group(1)))
    return ()


class Database:
    """Wrapper around a Datomic database that delegates to the connection."""

    def __init__(self, name: str, conn: Datomic):
        self.name = name
        self.conn = conn

    def __getattr__(self, name: str) -> Callable[..., Any]:
        def f(*args: Any, **kwargs: Any) -> Any:
            return getattr(self.conn, name)(*args, dbname=self.name, **kwargs)

        return f


class DatomicBase:
    """Configuration, validation and request building shared by both clients."""

    def __init__(
        self,
        server_url: str | None = None,
        port: int | None = None,
        storage: str = "mem",
        alias: str | None = None,
        *,
        db_name: str | None = None,
        timeout: float = 30.0,
        connect_timeout: float = 5.0,
        codec: EdnCodec | None = None,
    ):
        cls_name = type(self).__name__
        if server_url is None:
            raise ValidationError(f"{cls_name} server_url argument must be set")
        if not isinstance(server_url, str) or not server_url.strip():
            raise ValidationError(f"{cls_name} server_url must be a non-empty string")
        if port is None:
            raise ValidationError(f"{cls_name} port argument must be set")
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValidationError(f"{cls_name} port must be an integer")
        if not isinstance(storage, str) or not storage.strip():
            raise ValidationError(f"{cls_name} storage must be a non-empty string")
        if storage not in STORAGE_TYPES:
            raise ValidationError(
                f"{cls_name} storage must be one of the following [" + ", ".join(STORAGE_TYPES) + "]"
            )
        if alias is None:
            raise ValidationError(f"{cls_name} alias argument must be set")
        if not isinstance(alias, str) or not alias.strip():
            raise ValidationError(f"{cls_name} alias must be a non-empty string")

        self.server_url = server_url
        self.port = port
        self.storage = storage
        self.alias = alias
        self.db_name = db_name.lower() if db_name else None
        self.timeout = httpx.Timeout(timeout, connect=connect_timeout)
        self.data_url = f"{server_url}:{port}/data/"
        self.api_url = f"{server_url}:{port}/api/query"
        self._codec = codec or default_codec
        self.db_names: list[str] = []
        self.query_result: list[Any] = []
        self.transaction_response = ""

    @classmethod
    def from_settings(cls, settings: DatomicSettings | None = None, **kwargs: Any):
        """Build a client from :class:`DatomicSettings` (read from the environment by default)."""
        settings = settings or DatomicSettings()
        return cls(
            settings.server_url,
            settings.port,
            settings.storage,
            settings.alias,
            db_name=settings.db_name,
            timeout=settings.timeout,
            connect_timeout=settings.connect_timeout,
            **kwargs,
        )

    def db_url(self, dbname: str) -> str:
        """Construct the database URL."""
        return f"{self.data_url}{self.alias}/{dbname}"

    def _remember(self, dbname: str) -> None:
        if dbname not in self.db_names:
            self.db_names.append(dbname)

    def set_database(self, dbname: str | None = None) -> str:
        """
        Select the database that transactions and queries run against.

        Returns:
            The lower-cased database name.

        """
        if not isinstance(dbname, str) or not dbname.strip():
            raise ValidationError(
                f"{type(self).__name__}.set_database dbname must be a non-empty string"
            )
        self.db_name = dbname.lower()
        self._remember(self.db_name)
        logger.info("Database set to %s", self.db_name)
        return self.db_name

    def _target(self, method: str, dbname: str | None) -> str:
        dbname = dbname or self.db_name
        if not dbname:
            raise SequenceError(
                f"{type(self).__name__}.{method} no database selected, call set_database first"
            )
        return dbname

    def _creation_result(self, dbname: str, status_code: int) -> bool:
        self._remember(dbname)
        if status_code == 201:
            logger.info('Database "%s" created', dbname)
            return True
        logger.warning('Database "%s" already exists', dbname)
        return False

    def _decode(self, content: bytes) -> Any:
        """Parse a response body with the client codec; None when it is empty."""
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EDNParseError(f"Invalid UTF-8 encoding: {e}") from e
        values = self._codec.parse(text)
        return values[0] if values else None

    def _database_names(self, content: bytes) -> list[str]:
        names = self._decode(content)
        self.db_names = [str(name) for name in names or ()]
        return list(self.db_names)

    def _transaction_request(self, tx: Transaction, dbname: str) -> dict[str, Any]:
        if not isinstance(tx, Transaction):
            raise ValidationError(
                f"{type(self).__name__}.commit_transaction expects a Transaction"
            )
        return {
            "url": self.db_url(dbname) + "/",
            "data": {"tx-data": str(tx)},
            "headers": EDN_HEADERS,
        }

    def _store_transaction(self, content: bytes) -> dict[str, Any]:
        self.transaction_response = content.decode("utf-8")
        logger.info("commit_transaction success")
        return self._decode(content)

    def _alias_args(self, args: str, dbname: str) -> str:
        """Insert ``{:db/alias "<alias>/<db>"}`` after the opening bracket of ``args``."""
        alias = self._codec.encode({Keyword(":db/alias"): f"{self.alias}/{dbname}"})
        return args[:1] + alias + " " + args[1:]

    def _query_params(self, query: Query, dbname: str, raw: bool) -> dict[str, Any]:
        if not isinstance(query, Query):
            raise ValidationError(f"{type(self).__name__} expects a Query")
        if raw:
            if not query.get_raw_query():
                raise SequenceError(
                    f"{type(self).__name__}.commit_raw_query the query has no raw query body"
                )
            params: dict[str, Any] = {
                "q": query.get_raw_query(),
                "args": query.get_raw_query_args() or "[]",
            }
        else:
            params = {
                "q": query.get_query(),
                "args": self._alias_args(query.get_query_args(), dbname),
            }
        if query.get_limit() > 0:
            params["limit"] = query.get_limit()
        if query.get_offset() > 0:
            params["offset"] = query.get_offset()
        return params

    def _project_rows(
        self,
        content: bytes,
        row_factory: RowFactory[Any] | None,
        columns: Sequence[str],
    ) -> list[Any]:
        rows = self._decode(content) or ()
        if row_factory is None:
            self.query_result = [tuple(row) for row in rows]
        else:
            self.query_result = [row_factory(tuple(row), columns) for row in rows]
        logger.info("Query returned %d rows", len(self.query_result))
        return self.query_result

    def get_transaction_response(self) -> str:
        """Raw text of the most recent transaction response."""
        return self.transaction_response

    def get_query_result(self) -> list[Any]:
        """Rows of the most recent query."""
        return self.query_result


class Datomic(DatomicBase):
    """Datomic REST API client."""

    def _request(
        self,
        method: str,
        url: str,
        *,
        expected_status: tuple[int, ...] = (200,),
        **kwargs: Any,
    ) -> httpx.Response:
        """Make an HTTP request with error handling."""
        kwargs.setdefault("timeout", self.timeout)
        try:
            with httpx.Client() as client:
                r = client.request(method.upper(), url, **kwargs)
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

    def db(self, dbname: str) -> Database:
        """
        Get a Database wrapper for the given database name.

        Args:
            dbname: The name of the database.

        Returns:
            A Database instance that delegates calls to this connection.

        """
        return Database(dbname.lower(), self)

    def create_database(self, dbname: str) -> bool:
        """
        Create a new database.

        Returns:
            True if the database was created, False if it already existed.

        """
        dbname = dbname.lower()
        r = self._request(
            "post",
            self.data_url + self.alias + "/",
            data={"db-name": dbname},
            expected_status=(200, 201),
        )
        return self._creation_result(dbname, r.status_code)

    def get_database_names(self) -> list[str]:
        """List the databases of this storage alias."""
        r = self._request(
            "get",
            self.data_url + self.alias + "/",
            headers=EDN_HEADERS,
        )
        return self._database_names(r.content)

    def commit_transaction(self, tx: Transaction, *, dbname: str | None = None) -> dict[str, Any]:
        """
        Send a transaction to the selected database.

        Args:
            tx: The transaction to submit, rendered with ``str(tx)``.
            dbname: Overrides the database chosen with :meth:`set_database`.

        Returns:
            The decoded response, with keys like ':db-before', ':db-after',
            ':tx-data' and ':tempids'.

        """
        request = self._transaction_request(tx, self._target("commit_transaction", dbname))
        url = request.pop("url")
        r = self._request("post", url, expected_status=(201,), **request)
        return self._store_transaction(r.content)

    def commit_regular_query(
        self,
        query: Query,
        *,
        dbname: str | None = None,
        row_factory: RowFactory[Any] | None = dict_row,
    ) -> list[Any]:
        """
        Run a query assembled with find/in/where.

        Each result row is passed through ``row_factory`` with the query's
        :find variables as column names; the default yields dicts such as
        ``{"e": 17592186045418}``.

        """
        params = self._query_params(query, self._target("commit_regular_query", dbname), raw=False)
        r = self._request("get", self.api_url, params=params, headers=EDN_HEADERS)
        return self._project_rows(r.content, row_factory, query.get_find())

    def commit_raw_query(
        self,
        query: Query,
        *,
        dbname: str | None = None,
        row_factory: RowFactory[Any] | None = None,
    ) -> list[Any]:
        """Run a query built with :meth:`Query.new_raw_query`; rows are tuples by default."""
        params = self._query_params(query, dbname or self.db_name or "", raw=True)
        r = self._request("get", self.api_url, params=params, headers=EDN_HEADERS)
        return self._project_rows(
            r.content, row_factory, extract_find_vars(query.get_raw_query() or "")
        )
