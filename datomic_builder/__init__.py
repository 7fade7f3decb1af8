__version__ = "0.1.0"

from datomic_builder.async_datomic import AsyncDatabase, AsyncDatomic
from datomic_builder.codec import DefaultCodec, EdnCodec, default_codec, normalize
from datomic_builder.config import DatomicSettings
from datomic_builder.datomic import Database, Datomic
from datomic_builder.edn import dumps as edn_dumps, loads as edn_loads
from datomic_builder.edn.types import EdnList, Keyword, Symbol, Tag, Tagged
from datomic_builder.entity import Entity, temp_id
from datomic_builder.exceptions import (
    DatomicBuilderError,
    DatomicClientError,
    DatomicConnectionError,
    EDNParseError,
    ResourceError,
    SequenceError,
    ValidationError,
)
from datomic_builder.query import Query
from datomic_builder.schema import (
    BIGDEC,
    BIGINT,
    BOOLEAN,
    BYTES,
    DOUBLE,
    FLOAT,
    IDENTITY,
    INSTANT,
    KEYWORD,
    LONG,
    MANY,
    ONE,
    REF,
    STRING,
    URI,
    UUID,
    VALUE,
)
from datomic_builder.serialization import dataclass_row, dict_row, namedtuple_row, tuple_row
from datomic_builder.transaction import Transaction

__all__ = [
    # Builders
    "Entity",
    "Transaction",
    "Query",
    "temp_id",
    # Clients
    "AsyncDatabase",
    "AsyncDatomic",
    "Database",
    "Datomic",
    "DatomicSettings",
    # Row factories
    "dataclass_row",
    "dict_row",
    "namedtuple_row",
    "tuple_row",
    # EDN
    "EdnCodec",
    "DefaultCodec",
    "default_codec",
    "normalize",
    "edn_dumps",
    "edn_loads",
    "EdnList",
    "Keyword",
    "Symbol",
    "Tag",
    "Tagged",
    # Cardinality
    "ONE",
    "MANY",
    # Value types
    "STRING",
    "BOOLEAN",
    "LONG",
    "BIGINT",
    "FLOAT",
    "DOUBLE",
    "BIGDEC",
    "INSTANT",
    "UUID",
    "URI",
    "KEYWORD",
    "REF",
    "BYTES",
    # Uniqueness
    "IDENTITY",
    "VALUE",
    # Exceptions
    "DatomicBuilderError",
    "ValidationError",
    "SequenceError",
    "ResourceError",
    "DatomicClientError",
    "DatomicConnectionError",
    "EDNParseError",
    # Version
    "__version__",
]
