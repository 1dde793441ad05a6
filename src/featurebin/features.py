"""
Feature records and collections.

A Feature is an identified record with named attribute values and a
geometry. A FeatureCollection pairs an iterable of features with the
FeatureType describing them.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional

from featurebin.geometry import from_geojson
from featurebin.schema.attributes import ListAttributeSpec, SimpleAttributeSpec
from featurebin.schema.builder import FeatureType
from featurebin.schema.types import SimpleType

logger = logging.getLogger(__name__)


@dataclass
class Feature:
    """
    A single geospatial record.

    Attributes:
        id: Feature identifier
        attributes: Attribute values by name
        geometry: Default geometry (any object with ``geom_type``, ``coords``
            and ``representative_point()``)
    """
    id: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    geometry: Any = None

    def get(self, name: str) -> Any:
        """Attribute value by name, or None if unset."""
        return self.attributes.get(name)


class FeatureCollection:
    """
    Iterable of features sharing one FeatureType.

    The underlying iterable is consumed lazily, so a collection backed by a
    generator can only be iterated once.
    """

    def __init__(self, feature_type: FeatureType, features: Iterable[Feature]):
        self.feature_type = feature_type
        self._features = features

    @property
    def schema(self) -> FeatureType:
        return self.feature_type

    def __iter__(self) -> Iterator[Feature]:
        return iter(self._features)


# =============================================================================
# GeoJSON Input
# =============================================================================


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Coerce a Date attribute value.

    Accepts datetimes, epoch milliseconds and ISO-8601 strings (a trailing
    ``Z`` is read as UTC; naive strings are treated as UTC).
    """
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def feature_from_geojson(obj: Mapping[str, Any], feature_type: FeatureType) -> Feature:
    """
    Build a Feature from a GeoJSON feature mapping.

    Date and List[Date] properties are converted to datetimes according to
    the feature type; other values are kept as decoded from JSON.
    """
    properties = dict(obj.get("properties") or {})
    for attribute in feature_type.attributes:
        value = properties.get(attribute.name)
        if value is None:
            continue
        if isinstance(attribute, SimpleAttributeSpec) and attribute.data_type is SimpleType.DATE:
            properties[attribute.name] = to_datetime(value)
        elif isinstance(attribute, ListAttributeSpec) and attribute.element_type is SimpleType.DATE:
            properties[attribute.name] = [to_datetime(v) for v in value]

    geometry = obj.get("geometry")
    return Feature(
        id=str(obj.get("id", "")),
        attributes=properties,
        geometry=from_geojson(geometry) if geometry else None,
    )


def read_geojson_lines(path: Path, feature_type: FeatureType) -> FeatureCollection:
    """
    Lazily read newline-delimited GeoJSON features.

    Blank lines are ignored. The file is opened when iteration starts and
    closed when it finishes.
    """
    def features() -> Iterator[Feature]:
        with open(path, "r") as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    obj = json.loads(line)
                except json.JSONDecodeError as e:
                    raise ValueError(f"Invalid JSON on line {line_number} of {path}: {e}")
                yield feature_from_geojson(obj, feature_type)
        logger.debug(f"Finished reading features from {path}")

    return FeatureCollection(feature_type, features())
