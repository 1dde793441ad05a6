"""
Feature type construction.

A FeatureType is built once, either from spec text or from structured
configuration, and is read-only afterwards.

Example:
    >>> sft = create_type("example:tracks", "id:Integer,*geom:Point:srid=4326,dtg:Date")
    >>> sft.namespace, sft.name
    ('example', 'tracks')
    >>> sft.default_geometry.name, sft.default_date
    ('geom', 'dtg')
    >>> encode_type(sft)
    'id:Integer,*geom:Point:srid=4326,dtg:Date'
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from featurebin.errors import ValidationError
from featurebin.schema.attributes import (
    DEFAULT_DATE_FIELD,
    DEFAULT_SRID,
    AttributeDescriptor,
    AttributeSpec,
    FeatureOption,
    GeometryAttributeSpec,
    ListAttributeSpec,
    MapAttributeSpec,
    SimpleAttributeSpec,
)
from featurebin.schema.parser import encode_spec, parse_list_type, parse_map_type, parse_spec
from featurebin.schema.types import (
    GEOMETRY_TYPE_KEYWORDS,
    SIMPLE_TYPE_KEYWORDS,
    IndexCoverage,
    SimpleType,
    parse_cardinality,
    parse_index_coverage,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeatureType:
    """
    Immutable schema descriptor for a feature collection.

    Attributes:
        namespace: Optional namespace (None for bare names)
        name: Type name
        attributes: Ordered attribute specs
        default_geometry: Default geometry spec, if any geometry exists
        default_date: Name of the default temporal attribute, if any
        options: Feature-level options (e.g. table splitter)
        user_data: Read-only metadata populated by options and the builder
        descriptors: Built attribute descriptors, parallel to attributes
    """
    namespace: Optional[str]
    name: str
    attributes: Tuple[AttributeSpec, ...]
    default_geometry: Optional[GeometryAttributeSpec] = None
    default_date: Optional[str] = None
    options: Tuple[FeatureOption, ...] = ()
    user_data: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}), compare=False)
    descriptors: Tuple[AttributeDescriptor, ...] = field(default=(), compare=False)

    @property
    def type_name(self) -> str:
        return f"{self.namespace}:{self.name}" if self.namespace else self.name

    @property
    def attribute_names(self) -> List[str]:
        return [a.name for a in self.attributes]

    def index_of(self, name: str) -> int:
        """Position of an attribute, or -1 if absent."""
        for i, attribute in enumerate(self.attributes):
            if attribute.name == name:
                return i
        return -1

    def attribute(self, name: str) -> Optional[AttributeSpec]:
        i = self.index_of(name)
        return self.attributes[i] if i >= 0 else None

    def descriptor(self, name: str) -> Optional[AttributeDescriptor]:
        i = self.index_of(name)
        return self.descriptors[i] if i >= 0 else None

    def __str__(self) -> str:
        return f"FeatureType({self.type_name}: {encode_type(self)})"


# =============================================================================
# Construction
# =============================================================================


def build_type_name(name_spec: str) -> Tuple[Optional[str], str]:
    """
    Split ``namespace:name`` on the last colon.

    Bare names, and names ending in a colon, have no namespace.
    """
    i = name_spec.rfind(":")
    if i == -1 or i == len(name_spec) - 1:
        return None, name_spec
    return name_spec[:i], name_spec[i + 1:]


def create_type(name_spec: str, spec: str, default_date: Optional[str] = None) -> FeatureType:
    """Build a FeatureType from a ``namespace:name`` and spec text."""
    namespace, name = build_type_name(name_spec)
    parsed = parse_spec(spec)
    return create_type_from_specs(namespace, name, parsed.attributes, parsed.options, default_date)


def create_type_from_specs(
    namespace: Optional[str],
    name: str,
    attributes: Sequence[AttributeSpec],
    options: Iterable[FeatureOption] = (),
    default_date: Optional[str] = None,
) -> FeatureType:
    """
    Assemble a FeatureType from attribute specs.

    Args:
        namespace: Optional namespace
        name: Type name
        attributes: Ordered attribute specs
        options: Feature options, applied to user data in order
        default_date: Explicit default temporal attribute. If omitted, the
            first Date attribute is used.

    Returns:
        Built FeatureType

    Raises:
        ValidationError: On duplicate names, more than one default geometry,
            an unsupported SRID, or an invalid ``default_date``
    """
    seen = set()
    for attribute in attributes:
        if attribute.name in seen:
            raise ValidationError(f"Duplicate attribute name '{attribute.name}' in feature type '{name}'")
        seen.add(attribute.name)

    geometries = [a for a in attributes if isinstance(a, GeometryAttributeSpec)]
    flagged = [g for g in geometries if g.default]
    if len(flagged) > 1:
        names = ", ".join(g.name for g in flagged)
        raise ValidationError(f"Multiple default geometries declared in feature type '{name}': {names}")
    default_geometry = flagged[0] if flagged else (geometries[0] if geometries else None)

    # The default geometry always carries its flag so it encodes with '*'
    if default_geometry is not None and not default_geometry.default:
        default_geometry = default_geometry.copy(default=True)
        attributes = [default_geometry if a.name == default_geometry.name else a for a in attributes]
    attributes = tuple(attributes)

    dates = [
        a.name for a in attributes
        if isinstance(a, SimpleAttributeSpec) and a.data_type is SimpleType.DATE
    ]
    if default_date is not None:
        if default_date not in dates:
            raise ValidationError(
                f"Default date field '{default_date}' is not a Date attribute of feature type '{name}'"
            )
    elif dates:
        default_date = dates[0]
        if len(dates) > 1:
            logger.debug(f"Feature type '{name}' has {len(dates)} Date attributes; using '{default_date}'")

    descriptors = tuple(a.to_attribute() for a in attributes)

    user_data: Dict[str, Any] = {}
    options = tuple(options)
    for option in options:
        option.decorate(user_data)
    if default_date is not None:
        user_data[DEFAULT_DATE_FIELD] = default_date

    return FeatureType(
        namespace=namespace,
        name=name,
        attributes=attributes,
        default_geometry=default_geometry,
        default_date=default_date,
        options=options,
        user_data=MappingProxyType(user_data),
        descriptors=descriptors,
    )


def create_type_from_config(config) -> FeatureType:
    """
    Build a FeatureType from structured configuration.

    Args:
        config: FeatureTypeConfig, or a mapping with ``type-name`` and
            ``fields`` (or ``attributes``)
    """
    from featurebin.config.schema import FeatureTypeConfig

    if not isinstance(config, FeatureTypeConfig):
        config = FeatureTypeConfig.model_validate(config)

    namespace, name = build_type_name(config.type_name)
    attributes = [attribute_from_config(field_config) for field_config in config.fields]
    return create_type_from_specs(namespace, name, attributes, default_date=config.dtg_field)


def attribute_from_config(field_config) -> AttributeSpec:
    """
    Build one attribute spec from a field configuration.

    Dispatches on ``type``: simple keyword, geometry keyword, list type,
    then map type.

    Raises:
        ValidationError: If the type token is not recognized
    """
    from featurebin.config.schema import AttributeConfig

    if not isinstance(field_config, AttributeConfig):
        field_config = AttributeConfig.model_validate(field_config)

    type_token = field_config.type
    index = parse_index_coverage(field_config.index)
    cardinality = parse_cardinality(field_config.cardinality)

    if type_token in SIMPLE_TYPE_KEYWORDS:
        return SimpleAttributeSpec(
            field_config.name,
            SIMPLE_TYPE_KEYWORDS[type_token],
            index=index,
            index_value=field_config.index_value,
            cardinality=cardinality,
        )
    if type_token in GEOMETRY_TYPE_KEYWORDS:
        return GeometryAttributeSpec(
            field_config.name,
            GEOMETRY_TYPE_KEYWORDS[type_token],
            srid=field_config.srid if field_config.srid is not None else DEFAULT_SRID,
            default=field_config.default,
        )

    element = parse_list_type(type_token)
    if element is not None:
        return ListAttributeSpec(field_config.name, element, index=index, cardinality=cardinality)

    map_types = parse_map_type(type_token)
    if map_types is not None:
        return MapAttributeSpec(field_config.name, map_types[0], map_types[1], index=index, cardinality=cardinality)

    raise ValidationError(f"Unknown type '{type_token}' for attribute '{field_config.name}'")


# =============================================================================
# Encoding and Queries
# =============================================================================


def encode_type(feature_type: FeatureType) -> str:
    """Canonical spec text for a FeatureType, including feature options."""
    return encode_spec(feature_type.attributes, feature_type.options)


def secondary_indexed_attributes(feature_type: FeatureType) -> List[AttributeDescriptor]:
    """Non-geometry attributes that participate in a secondary index."""
    return [
        d for d in feature_type.descriptors
        if not d.is_geometry and d.index is not IndexCoverage.NONE
    ]
