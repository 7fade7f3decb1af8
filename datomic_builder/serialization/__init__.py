"""Result shaping for query rows."""

from datomic_builder.serialization.factories import (
    DataclassRowFactory,
    NamedTupleRowFactory,
    RowFactory,
    dataclass_row,
    dict_row,
    namedtuple_row,
    tuple_row,
)

__all__ = [
    "RowFactory",
    "DataclassRowFactory",
    "NamedTupleRowFactory",
    "dataclass_row",
    "dict_row",
    "namedtuple_row",
    "tuple_row",
]
