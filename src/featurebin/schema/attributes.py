"""
Attribute specifications for feature types.

The attribute model is a closed set of four variants:

- SimpleAttributeSpec: scalar values (String, Integer, Date, ...)
- GeometryAttributeSpec: geometry values with an SRID and default flag
- ListAttributeSpec: lists of a scalar element type
- MapAttributeSpec: maps from a scalar key type to a scalar value type

All variants are frozen dataclasses sharing the AttributeSpecBase interface:
``to_attribute()`` builds a validated AttributeDescriptor, ``to_spec()``
renders canonical spec text and ``copy()`` clones with changes.

Example:
    >>> spec = SimpleAttributeSpec("dtg", SimpleType.DATE, index=IndexCoverage.FULL)
    >>> spec.to_spec()
    'dtg:Date:index=full'
"""

import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union

from featurebin.errors import ValidationError
from featurebin.schema.types import Cardinality, GeometryType, IndexCoverage, SimpleType

OPT_INDEX = "index"
OPT_INDEX_VALUE = "index-value"
OPT_CARDINALITY = "cardinality"
OPT_SRID = "srid"
OPT_DEFAULT = "default"

TABLE_SPLITTER = "table.splitter.class"
TABLE_SPLITTER_OPTIONS = "table.splitter.options"
DEFAULT_DATE_FIELD = "default_date_field"

DEFAULT_SRID = 4326
SUPPORTED_SRIDS = (4326, -1)


@dataclass(frozen=True)
class AttributeDescriptor:
    """
    Built form of an attribute, as stored on a FeatureType.

    Attributes:
        name: Attribute name
        binding: Python type of attribute values (list/dict for collections)
        index: Secondary index coverage
        index_value: Whether the full value is stored with the index entry
        cardinality: Query-planning hint
        srid: Spatial reference id (geometries only)
        collection_type: Element type for list attributes
        map_types: (key, value) types for map attributes
    """
    name: str
    binding: type
    index: IndexCoverage
    index_value: bool
    cardinality: Cardinality
    srid: Optional[int] = None
    collection_type: Optional[SimpleType] = None
    map_types: Optional[Tuple[SimpleType, SimpleType]] = None

    @property
    def is_geometry(self) -> bool:
        return self.srid is not None


class AttributeSpecBase(ABC):
    """Capabilities shared by every attribute variant."""

    name: str

    @property
    @abstractmethod
    def binding(self) -> type:
        """Python type of the attribute's values."""

    @abstractmethod
    def to_attribute(self) -> AttributeDescriptor:
        """Build the descriptor, validating build-time constraints."""

    @abstractmethod
    def to_spec(self) -> str:
        """Render the minimal canonical spec text for this attribute."""

    def copy(self, **changes) -> "AttributeSpec":
        """Return a copy of this spec with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    def _index_spec(self) -> str:
        parts = []
        if self.index is not IndexCoverage.NONE:
            parts.append(f":{OPT_INDEX}={self.index}")
        if self.index_value:
            parts.append(f":{OPT_INDEX_VALUE}=true")
        if self.cardinality in (Cardinality.LOW, Cardinality.HIGH):
            parts.append(f":{OPT_CARDINALITY}={self.cardinality}")
        return "".join(parts)


# =============================================================================
# Attribute Variants
# =============================================================================


@dataclass(frozen=True)
class SimpleAttributeSpec(AttributeSpecBase):
    """Scalar attribute."""

    name: str
    data_type: SimpleType
    index: IndexCoverage = IndexCoverage.NONE
    index_value: bool = False
    cardinality: Cardinality = Cardinality.UNKNOWN

    @property
    def binding(self) -> type:
        return self.data_type.binding

    def to_attribute(self) -> AttributeDescriptor:
        return AttributeDescriptor(
            name=self.name,
            binding=self.binding,
            index=self.index,
            index_value=self.index_value,
            cardinality=self.cardinality,
        )

    def to_spec(self) -> str:
        return f"{self.name}:{self.data_type}{self._index_spec()}"


@dataclass(frozen=True)
class GeometryAttributeSpec(AttributeSpecBase):
    """
    Geometry attribute.

    Index settings are derived: the default geometry is fully indexed with
    its value, other geometries are not indexed.
    """

    name: str
    geometry_type: GeometryType
    srid: int = DEFAULT_SRID
    default: bool = False

    @property
    def binding(self) -> type:
        return object

    @property
    def index(self) -> IndexCoverage:
        return IndexCoverage.FULL if self.default else IndexCoverage.NONE

    @property
    def index_value(self) -> bool:
        return self.default

    @property
    def cardinality(self) -> Cardinality:
        return Cardinality.UNKNOWN

    def to_attribute(self) -> AttributeDescriptor:
        if self.srid not in SUPPORTED_SRIDS:
            raise ValidationError(
                f"Invalid SRID '{self.srid}' for geometry attribute '{self.name}'. "
                f"Only 4326 (or -1 for unset) is supported."
            )
        return AttributeDescriptor(
            name=self.name,
            binding=self.binding,
            index=self.index,
            index_value=self.index_value,
            cardinality=self.cardinality,
            srid=self.srid,
        )

    def to_spec(self) -> str:
        star = "*" if self.default else ""
        return f"{star}{self.name}:{self.geometry_type}:{OPT_SRID}={self.srid}"


@dataclass(frozen=True)
class ListAttributeSpec(AttributeSpecBase):
    """List of scalars. Never stores its value in the index."""

    name: str
    element_type: SimpleType = SimpleType.STRING
    index: IndexCoverage = IndexCoverage.NONE
    cardinality: Cardinality = Cardinality.UNKNOWN

    @property
    def binding(self) -> type:
        return list

    @property
    def index_value(self) -> bool:
        return False

    def to_attribute(self) -> AttributeDescriptor:
        return AttributeDescriptor(
            name=self.name,
            binding=list,
            index=self.index,
            index_value=False,
            cardinality=self.cardinality,
            collection_type=self.element_type,
        )

    def to_spec(self) -> str:
        return f"{self.name}:List[{self.element_type}]{self._index_spec()}"


@dataclass(frozen=True)
class MapAttributeSpec(AttributeSpecBase):
    """Map of scalars to scalars. Never stores its value in the index."""

    name: str
    key_type: SimpleType = SimpleType.STRING
    value_type: SimpleType = SimpleType.STRING
    index: IndexCoverage = IndexCoverage.NONE
    cardinality: Cardinality = Cardinality.UNKNOWN

    @property
    def binding(self) -> type:
        return dict

    @property
    def index_value(self) -> bool:
        return False

    def to_attribute(self) -> AttributeDescriptor:
        return AttributeDescriptor(
            name=self.name,
            binding=dict,
            index=self.index,
            index_value=False,
            cardinality=self.cardinality,
            map_types=(self.key_type, self.value_type),
        )

    def to_spec(self) -> str:
        return f"{self.name}:Map[{self.key_type},{self.value_type}]{self._index_spec()}"


AttributeSpec = Union[SimpleAttributeSpec, GeometryAttributeSpec, ListAttributeSpec, MapAttributeSpec]


# =============================================================================
# Feature Options
# =============================================================================


@dataclass(frozen=True)
class Splitter:
    """
    Table splitter declared in the ``;`` section of a spec.

    Attributes:
        class_name: Fully qualified splitter class
        options: Splitter-specific key/value options
    """
    class_name: str
    options: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    def decorate(self, user_data: Dict[str, object]) -> None:
        """Record this option in a feature type's user data."""
        user_data[TABLE_SPLITTER] = self.class_name
        user_data[TABLE_SPLITTER_OPTIONS] = dict(self.options)

    def to_spec(self) -> str:
        text = f"{TABLE_SPLITTER}={self.class_name}"
        if self.options:
            opts = ",".join(f"{k}:{v}" for k, v in self.options.items())
            text += f",{TABLE_SPLITTER_OPTIONS}={opts}"
        return text

    def __hash__(self):
        return hash((self.class_name, tuple(self.options.items())))

    def __eq__(self, other):
        if not isinstance(other, Splitter):
            return NotImplemented
        return self.class_name == other.class_name and dict(self.options) == dict(other.options)


FeatureOption = Splitter


@dataclass(frozen=True)
class FeatureSpec:
    """Result of parsing spec text: ordered attributes plus feature options."""
    attributes: Tuple[AttributeSpec, ...]
    options: Tuple[FeatureOption, ...] = ()
