"""Datomic schema vocabulary used by attribute definitions."""

# Partitions new entity ids can be allocated in
PARTITIONS = ("db", "tx", "user")
DEFAULT_PARTITION = "db"

CARDINALITIES = ("one", "many")

VALUE_TYPES = (
    "bigdec",
    "bigint",
    "boolean",
    "bytes",
    "double",
    "float",
    "instant",
    "keyword",
    "long",
    "ref",
    "string",
    "uuid",
    "uri",
)

UNIQUENESS = ("value", "identity")

INSTALL_TYPES = ("attribute", "partition")

# Cardinality constants
ONE = ":db.cardinality/one"
MANY = ":db.cardinality/many"

# Uniqueness constants
IDENTITY = ":db.unique/identity"
VALUE = ":db.unique/value"

# Value type constants
STRING = ":db.type/string"
BOOLEAN = ":db.type/boolean"
LONG = ":db.type/long"
BIGINT = ":db.type/bigint"
FLOAT = ":db.type/float"
DOUBLE = ":db.type/double"
BIGDEC = ":db.type/bigdec"
INSTANT = ":db.type/instant"
UUID = ":db.type/uuid"
URI = ":db.type/uri"
KEYWORD = ":db.type/keyword"
REF = ":db.type/ref"
BYTES = ":db.type/bytes"
