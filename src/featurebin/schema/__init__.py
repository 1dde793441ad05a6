"""Schema specification language: attribute specs, spec text and feature types."""

from .types import IndexCoverage, Cardinality, SimpleType, GeometryType
from .attributes import (
    AttributeDescriptor,
    AttributeSpec,
    SimpleAttributeSpec,
    GeometryAttributeSpec,
    ListAttributeSpec,
    MapAttributeSpec,
    Splitter,
    FeatureSpec,
)
from .parser import parse_spec, encode_spec
from .builder import (
    FeatureType,
    build_type_name,
    create_type,
    create_type_from_specs,
    create_type_from_config,
    attribute_from_config,
    encode_type,
    secondary_indexed_attributes,
)

__all__ = [
    "IndexCoverage",
    "Cardinality",
    "SimpleType",
    "GeometryType",
    "AttributeDescriptor",
    "AttributeSpec",
    "SimpleAttributeSpec",
    "GeometryAttributeSpec",
    "ListAttributeSpec",
    "MapAttributeSpec",
    "Splitter",
    "FeatureSpec",
    "parse_spec",
    "encode_spec",
    "FeatureType",
    "build_type_name",
    "create_type",
    "create_type_from_specs",
    "create_type_from_config",
    "attribute_from_config",
    "encode_type",
    "secondary_indexed_attributes",
]
