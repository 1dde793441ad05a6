"""
Type keywords and indexing enums for the schema language.

The lookup tables here are module-level and read-only. They map every
keyword accepted in spec text (including legacy aliases such as ``"0"``
for integer or ``"true"`` for boolean) to a canonical type.
"""

import uuid
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple


class IndexCoverage(Enum):
    """Secondary index participation of an attribute."""

    NONE = "none"
    JOIN = "join"
    FULL = "full"

    def __str__(self) -> str:
        return self.value


class Cardinality(Enum):
    """Query-planning hint for how distinct an attribute's values are."""

    UNKNOWN = "unknown"
    LOW = "low"
    HIGH = "high"

    def __str__(self) -> str:
        return self.value


class SimpleType(Enum):
    """Scalar attribute types. Values are the canonical spec names."""

    STRING = "String"
    INTEGER = "Integer"
    LONG = "Long"
    DOUBLE = "Double"
    FLOAT = "Float"
    BOOLEAN = "Boolean"
    UUID = "UUID"
    DATE = "Date"

    @property
    def binding(self) -> type:
        """Python type used for values of this attribute."""
        return _SIMPLE_BINDINGS[self]

    def __str__(self) -> str:
        return self.value


class GeometryType(Enum):
    """Geometry attribute types. Values are the canonical spec names."""

    GEOMETRY = "Geometry"
    POINT = "Point"
    LINESTRING = "LineString"
    POLYGON = "Polygon"
    MULTIPOINT = "MultiPoint"
    MULTILINESTRING = "MultiLineString"
    MULTIPOLYGON = "MultiPolygon"
    GEOMETRYCOLLECTION = "GeometryCollection"

    def __str__(self) -> str:
        return self.value


_SIMPLE_BINDINGS = {
    SimpleType.STRING: str,
    SimpleType.INTEGER: int,
    SimpleType.LONG: int,
    SimpleType.DOUBLE: float,
    SimpleType.FLOAT: float,
    SimpleType.BOOLEAN: bool,
    SimpleType.UUID: uuid.UUID,
    SimpleType.DATE: datetime,
}


# =============================================================================
# Keyword Tables
# =============================================================================

SIMPLE_TYPE_KEYWORDS: Mapping[str, SimpleType] = MappingProxyType({
    "String": SimpleType.STRING,
    "java.lang.String": SimpleType.STRING,
    "string": SimpleType.STRING,
    "Integer": SimpleType.INTEGER,
    "java.lang.Integer": SimpleType.INTEGER,
    "int": SimpleType.INTEGER,
    "Int": SimpleType.INTEGER,
    "0": SimpleType.INTEGER,
    "Long": SimpleType.LONG,
    "java.lang.Long": SimpleType.LONG,
    "long": SimpleType.LONG,
    "Double": SimpleType.DOUBLE,
    "java.lang.Double": SimpleType.DOUBLE,
    "double": SimpleType.DOUBLE,
    "0.0": SimpleType.DOUBLE,
    "Float": SimpleType.FLOAT,
    "java.lang.Float": SimpleType.FLOAT,
    "float": SimpleType.FLOAT,
    "0.0f": SimpleType.FLOAT,
    "Boolean": SimpleType.BOOLEAN,
    "java.lang.Boolean": SimpleType.BOOLEAN,
    "true": SimpleType.BOOLEAN,
    "false": SimpleType.BOOLEAN,
    "UUID": SimpleType.UUID,
    "Date": SimpleType.DATE,
})

GEOMETRY_TYPE_KEYWORDS: Mapping[str, GeometryType] = MappingProxyType(
    {g.value: g for g in GeometryType}
)

LIST_TYPE_KEYWORDS: Tuple[str, ...] = ("list", "List", "java.util.List")
MAP_TYPE_KEYWORDS: Tuple[str, ...] = ("map", "Map", "java.util.Map")


def longest_first(keywords) -> Tuple[str, ...]:
    """
    Order keywords so that no keyword is preceded by one of its prefixes.

    ``Integer`` must be tried before ``Int`` and ``0.0f`` before ``0.0``
    before ``0``. Ties are broken alphabetically so the order is stable.
    """
    return tuple(sorted(keywords, key=lambda k: (-len(k), k)))


SIMPLE_KEYWORDS_ORDERED = longest_first(SIMPLE_TYPE_KEYWORDS)
GEOMETRY_KEYWORDS_ORDERED = longest_first(GEOMETRY_TYPE_KEYWORDS)
LIST_KEYWORDS_ORDERED = longest_first(LIST_TYPE_KEYWORDS)
MAP_KEYWORDS_ORDERED = longest_first(MAP_TYPE_KEYWORDS)


def parse_index_coverage(value) -> IndexCoverage:
    """
    Resolve an ``index`` option.

    Accepts an enum name (any case) or a legacy boolean, where ``true``
    means JOIN. Anything else falls back to NONE.
    """
    if isinstance(value, IndexCoverage):
        return value
    if isinstance(value, bool):
        return IndexCoverage.JOIN if value else IndexCoverage.NONE
    if value is None:
        return IndexCoverage.NONE
    text = str(value).strip().lower()
    for coverage in IndexCoverage:
        if coverage.value == text:
            return coverage
    return IndexCoverage.JOIN if text == "true" else IndexCoverage.NONE


def parse_cardinality(value) -> Cardinality:
    """Resolve a ``cardinality`` option; unrecognized values are UNKNOWN."""
    if isinstance(value, Cardinality):
        return value
    if value is None:
        return Cardinality.UNKNOWN
    text = str(value).strip().lower()
    for cardinality in Cardinality:
        if cardinality.value == text:
            return cardinality
    return Cardinality.UNKNOWN
