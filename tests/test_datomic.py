"""Tests for the Datomic REST client."""

from dataclasses import dataclass
from datetime import datetime
from unittest.mock import MagicMock

import httpx
import pytest

from datomic_builder.codec import DefaultCodec
from datomic_builder.config import DatomicSettings
from datomic_builder.datomic import Database, Datomic, extract_find_vars
from datomic_builder.entity import Entity
from datomic_builder.exceptions import (
    DatomicClientError,
    DatomicConnectionError,
    EDNParseError,
    SequenceError,
    ValidationError,
)
from datomic_builder.query import Query
from datomic_builder.serialization import dataclass_row, dict_row, namedtuple_row
from datomic_builder.transaction import Transaction

TIMEOUT = httpx.Timeout(30.0, connect=5.0)
EDN_HEADERS = {"Accept": "application/edn"}

TX_RESPONSE = (
    b'{:db-before {:basis-t 63, :db/alias "dev/scratch"}, '
    b':db-after {:basis-t 1000, :db/alias "dev/scratch"}, '
    b':tx-data [{:e 13194139534312, :a 50, :v #inst "2014-12-01T15:27:26.632-00:00", '
    b':tx 13194139534312, :added true} {:e 17592186045417, :a 62, '
    b':v "hello REST world", :tx 13194139534312, :added true}], '
    b':tempids {-9223350046623220292 17592186045417}}'
)


class TestConstruction:
    """Tests for client configuration."""

    def test_urls(self, conn):
        assert conn.data_url == "http://localhost:9998/data/"
        assert conn.api_url == "http://localhost:9998/api/query"
        assert conn.db_url("mydb") == "http://localhost:9998/data/dev/mydb"

    @pytest.mark.parametrize(
        "args,message",
        [
            ((None, 9998, "mem", "dev"), "server_url argument must be set"),
            (("", 9998, "mem", "dev"), "server_url must be a non-empty string"),
            (("http://localhost", None, "mem", "dev"), "port argument must be set"),
            (("http://localhost", "9998", "mem", "dev"), "port must be an integer"),
            (("http://localhost", 9998, "disk", "dev"), "storage must be one of the following"),
            (("http://localhost", 9998, "mem", None), "alias argument must be set"),
            (("http://localhost", 9998, "mem", " "), "alias must be a non-empty string"),
        ],
    )
    def test_invalid_arguments(self, args, message):
        with pytest.raises(ValidationError, match=message):
            Datomic(*args)

    def test_from_settings(self):
        settings = DatomicSettings(
            server_url="http://datomic", port=8080, storage="dev", alias="prod", db_name="Shop"
        )
        conn = Datomic.from_settings(settings)

        assert conn.api_url == "http://datomic:8080/api/query"
        assert conn.storage == "dev"
        assert conn.alias == "prod"
        assert conn.db_name == "shop"

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("DATOMIC_SERVER_URL", "http://envhost")
        monkeypatch.setenv("DATOMIC_PORT", "7777")
        monkeypatch.setenv("DATOMIC_ALIAS", "staging")

        conn = Datomic.from_settings()

        assert conn.data_url == "http://envhost:7777/data/"
        assert conn.alias == "staging"


class TestDatabases:
    """Tests for database management."""

    def test_create_database(self, conn, mock_client):
        mock_client.request.return_value = MagicMock(status_code=201)

        assert conn.create_database("Cms") is True
        mock_client.request.assert_called_once_with(
            "POST",
            "http://localhost:9998/data/dev/",
            data={"db-name": "cms"},
            timeout=TIMEOUT,
        )
        assert "cms" in conn.db_names

    def test_create_existing_database(self, conn, mock_client, caplog):
        mock_client.request.return_value = MagicMock(status_code=200)

        with caplog.at_level("WARNING", logger="datomic_builder.datomic"):
            assert conn.create_database("cms") is False
        assert "already exists" in caplog.text

    def test_create_database_error(self, conn, mock_client):
        mock_client.request.return_value = MagicMock(status_code=500, text="boom")

        with pytest.raises(DatomicClientError) as exc_info:
            conn.create_database("cms")
        assert exc_info.value.status_code == 500

    def test_get_database_names(self, conn, mock_client):
        mock_client.request.return_value = MagicMock(
            status_code=200, content=b'["cms" "shop"]'
        )

        assert conn.get_database_names() == ["cms", "shop"]
        mock_client.request.assert_called_once_with(
            "GET",
            "http://localhost:9998/data/dev/",
            headers=EDN_HEADERS,
            timeout=TIMEOUT,
        )

    def test_set_database(self, conn):
        assert conn.set_database("MyDB") == "mydb"
        assert conn.db_name == "mydb"

    def test_set_database_requires_name(self, conn):
        with pytest.raises(ValidationError):
            conn.set_database("")

    def test_db_wrapper(self, conn):
        db = conn.db("Shop")
        assert isinstance(db, Database)
        assert db.name == "shop"
        assert db.conn is conn


class TestTransactions:
    """Tests for commit_transaction()."""

    def test_commit_transaction(self, conn, mock_client):
        conn.set_database("scratch")
        tx = Transaction().add("person", "name", "Peter", -1)
        mock_client.request.return_value = MagicMock(status_code=201, content=TX_RESPONSE)

        result = conn.commit_transaction(tx)

        mock_client.request.assert_called_once_with(
            "POST",
            "http://localhost:9998/data/dev/scratch/",
            data={"tx-data": '[[:db/add #db/id [:db.part/user -1] :person/name "Peter"]]'},
            headers=EDN_HEADERS,
            timeout=TIMEOUT,
        )
        assert result[":db-after"] == {":db/alias": "dev/scratch", ":basis-t": 1000}
        assert result[":tempids"] == {-9223350046623220292: 17592186045417}
        assert isinstance(result[":tx-data"][0][":v"], datetime)
        assert conn.get_transaction_response() == TX_RESPONSE.decode()

    def test_commit_schema(self, conn, mock_client):
        conn.set_database("scratch")
        tx = Transaction().append(Entity().ident("community", "name").value_type("string"))
        mock_client.request.return_value = MagicMock(status_code=201, content=b"{}")

        conn.commit_transaction(tx)

        sent = mock_client.request.call_args[1]["data"]["tx-data"]
        assert sent == (
            "[{:db/id #db/id [:db.part/db] :db/ident :community/name "
            ":db/valueType :db.type/string}]"
        )

    def test_commit_through_database_wrapper(self, conn, mock_client):
        mock_client.request.return_value = MagicMock(status_code=201, content=b"{}")

        conn.db("other").commit_transaction(Transaction())

        assert mock_client.request.call_args[0][1] == "http://localhost:9998/data/dev/other/"

    def test_commit_without_database(self, conn):
        with pytest.raises(SequenceError):
            conn.commit_transaction(Transaction())

    def test_commit_requires_transaction(self, conn):
        conn.set_database("scratch")
        with pytest.raises(ValidationError):
            conn.commit_transaction("[]")

    def test_commit_rejected(self, conn, mock_client):
        conn.set_database("scratch")
        mock_client.request.return_value = MagicMock(status_code=400, text="bad tx")

        with pytest.raises(DatomicClientError, match="400") as exc_info:
            conn.commit_transaction(Transaction())
        assert exc_info.value.status_code == 400


class TestQueries:
    """Tests for commit_regular_query() and commit_raw_query()."""

    def test_regular_query(self, conn, mock_client):
        conn.set_database("mydb")
        q = Query().find("e").where({"e": "community/name", 0: "n"})
        mock_client.request.return_value = MagicMock(
            status_code=200, content=b"[[17592186045418] [17592186045419]]"
        )

        result = conn.commit_regular_query(q)

        assert result == [{"e": 17592186045418}, {"e": 17592186045419}]
        assert conn.get_query_result() == result
        mock_client.request.assert_called_once_with(
            "GET",
            "http://localhost:9998/api/query",
            params={
                "q": "[:find ?e :in $ :where [?e :community/name ?n]]",
                "args": '[{:db/alias "dev/mydb"} ]',
            },
            headers=EDN_HEADERS,
            timeout=TIMEOUT,
        )

    def test_regular_query_with_args_limit_and_offset(self, conn, mock_client):
        conn.set_database("mydb")
        q = (
            Query()
            .find("e")
            .in_("name")
            .where({"e": "community/name", 0: "name"})
            .arg({"name": "Foo"})
            .limit(10)
            .offset(5)
        )
        mock_client.request.return_value = MagicMock(status_code=200, content=b"[]")

        assert conn.commit_regular_query(q) == []

        params = mock_client.request.call_args[1]["params"]
        assert params["args"] == '[{:db/alias "dev/mydb"} [:name "Foo"]]'
        assert params["limit"] == 10
        assert params["offset"] == 5

    def test_regular_query_namedtuple_rows(self, conn, mock_client):
        conn.set_database("mydb")
        q = Query().find("e", "n").where({"e": "community/name", 0: "n"})
        mock_client.request.return_value = MagicMock(status_code=200, content=b'[[1 "Foo"]]')

        (row,) = conn.commit_regular_query(q, row_factory=namedtuple_row("Community"))

        assert row.e == 1
        assert row.n == "Foo"

    def test_regular_query_dataclass_rows(self, conn, mock_client):
        @dataclass
        class Community:
            name: str

        conn.set_database("mydb")
        q = Query().find("n").where({"e": "community/name", 0: "n"})
        mock_client.request.return_value = MagicMock(status_code=200, content=b'[["Foo"]]')

        result = conn.commit_regular_query(q, row_factory=dataclass_row(Community, {"n": "name"}))

        assert result == [Community(name="Foo")]

    def test_raw_query(self, conn, mock_client):
        q = Query().new_raw_query("[:find ?e ?n :where [?e :person/name ?n]]")
        mock_client.request.return_value = MagicMock(status_code=200, content=b'[[1 "Ann"]]')

        assert conn.commit_raw_query(q) == [(1, "Ann")]
        mock_client.request.assert_called_once_with(
            "GET",
            "http://localhost:9998/api/query",
            params={
                "q": "[:find ?e ?n :where [?e :person/name ?n]]",
                "args": "[]",
            },
            headers=EDN_HEADERS,
            timeout=TIMEOUT,
        )

    def test_raw_query_with_args_and_row_factory(self, conn, mock_client):
        q = Query().new_raw_query("[:find ?n :in $ :where [?e :person/name ?n]]")
        q.add_raw_query_args('[{:db/alias "dev/mydb"}]')
        mock_client.request.return_value = MagicMock(status_code=200, content=b'[["Ann"]]')

        assert conn.commit_raw_query(q, row_factory=dict_row) == [{"n": "Ann"}]
        params = mock_client.request.call_args[1]["params"]
        assert params["args"] == '[{:db/alias "dev/mydb"}]'

    def test_raw_query_without_body(self, conn):
        with pytest.raises(SequenceError):
            conn.commit_raw_query(Query())

    def test_query_without_database(self, conn):
        with pytest.raises(SequenceError):
            conn.commit_regular_query(Query().find("e"))


class RecordingCodec(DefaultCodec):
    def __init__(self):
        super().__init__()
        self.parsed = []

    def parse(self, text):
        self.parsed.append(text)
        return super().parse(text)


class TestResponseDecoding:
    """Responses are read with the codec handed to the client."""

    def test_query_rows_use_client_codec(self, mock_client):
        codec = RecordingCodec()
        conn = Datomic("http://localhost", 9998, "mem", "dev", codec=codec)
        q = Query().new_raw_query("[:find ?e :where [?e :p/x 100M]]")
        mock_client.request.return_value = MagicMock(status_code=200, content=b"[[1]]")

        assert conn.commit_raw_query(q) == [(1,)]
        assert codec.parsed == ["[[1]]"]

    def test_database_names_use_client_codec(self, mock_client):
        codec = RecordingCodec()
        conn = Datomic("http://localhost", 9998, "mem", "dev", codec=codec)
        mock_client.request.return_value = MagicMock(status_code=200, content=b'["a" "b"]')

        assert conn.get_database_names() == ["a", "b"]
        assert codec.parsed == ['["a" "b"]']

    def test_transaction_response_uses_client_codec(self, mock_client):
        codec = RecordingCodec()
        conn = Datomic("http://localhost", 9998, "mem", "dev", db_name="mydb", codec=codec)
        mock_client.request.return_value = MagicMock(status_code=201, content=TX_RESPONSE)

        conn.commit_transaction(Transaction().add("a", "b", 1))

        assert codec.parsed == [TX_RESPONSE.decode("utf-8")]

    def test_empty_response_body(self, conn, mock_client):
        conn.set_database("mydb")
        mock_client.request.return_value = MagicMock(status_code=200, content=b"")

        assert conn.commit_regular_query(Query().find("e").where({"e": "a/b", 0: "x"})) == []

    def test_invalid_utf8_response(self, conn, mock_client):
        mock_client.request.return_value = MagicMock(status_code=200, content=b"\xff\xfe")

        with pytest.raises(EDNParseError, match="Invalid UTF-8 encoding"):
            conn.get_database_names()


class TestErrors:
    """Tests for transport error mapping."""

    def test_connection_error(self, conn, mock_client):
        mock_client.request.side_effect = httpx.ConnectError("Connection refused")

        with pytest.raises(DatomicConnectionError, match="Failed to connect"):
            conn.create_database("cms")

    def test_timeout_error(self, conn, mock_client):
        mock_client.request.side_effect = httpx.ReadTimeout("Read timed out")

        with pytest.raises(DatomicConnectionError, match="timed out"):
            conn.get_database_names()

    def test_http_error(self, conn, mock_client):
        mock_client.request.side_effect = httpx.HTTPError("Generic error")

        with pytest.raises(DatomicClientError, match="failed"):
            conn.get_database_names()


class TestExtractFindVars:
    """Tests for extract_find_vars()."""

    @pytest.mark.parametrize(
        "query,expected",
        [
            ("[:find ?e ?n :where [?e :person/name ?n]]", ("e", "n")),
            ("[:find ?e :in $ ?name :where [?e :person/name ?name]]", ("e",)),
            ("[:find ?first-name]", ("first-name",)),
            ("[:where [?e :a ?v]]", ()),
        ],
    )
    def test_extract(self, query, expected):
        assert extract_find_vars(query) == expected
