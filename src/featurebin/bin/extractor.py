"""
Point tuple extraction for BIN encoding.

Maps features to PointTuples according to BinEncodingOptions. Field roles
are validated against the FeatureType before any feature is read.

Geometry handling:
    - Point schemas: one tuple per feature, from the point itself
    - LineString schemas: one tuple per vertex, paired with a List[Date]
      attribute of the same length
    - Other geometries: one tuple per feature, from an interior point

Axis order names the order of the geometry's own coordinates: with
``LAT_LON`` the x ordinate is the latitude, with ``LON_LAT`` (GeoJSON
convention) the x ordinate is the longitude.
"""

import logging
import time
import warnings
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Iterator, Optional, Tuple

import numpy as np

from featurebin.bin.codec import PointTuple
from featurebin.config.schema import AxisOrder, BinEncodingOptions
from featurebin.errors import SkippedRecordWarning, ValidationError
from featurebin.features import Feature
from featurebin.schema.attributes import ListAttributeSpec, SimpleAttributeSpec
from featurebin.schema.builder import FeatureType
from featurebin.schema.types import GeometryType, SimpleType

logger = logging.getLogger(__name__)

TRACK_ID_FEATURE_ID = "id"


def to_millis(value: Any) -> int:
    """Epoch milliseconds of a datetime (naive values are UTC) or an int."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    return int(value)


def to_float32(value: Any) -> float:
    """Coerce a float, double or numeric string to float32 precision."""
    return float(np.float32(float(value)))


class PointExtractor:
    """
    Extracts PointTuples from features of one FeatureType.

    Args:
        feature_type: Schema of the features
        options: Field roles and encoding settings
        now_ms: Timestamp used for point features with no date value
            (defaults to the time the extractor is created)

    Example:
        ```python
        extractor = PointExtractor(sft, BinEncodingOptions(dtg_field="dtg", track_id_field="id"))
        extractor.validate()
        point = extractor.extract(feature)
        ```
    """

    def __init__(
        self,
        feature_type: FeatureType,
        options: BinEncodingOptions,
        now_ms: Optional[int] = None,
    ):
        self.feature_type = feature_type
        self.options = options
        self.now_ms = now_ms if now_ms is not None else int(time.time() * 1000)

        geometry = feature_type.default_geometry
        geometry_type = geometry.geometry_type if geometry is not None else None
        self.is_point = geometry_type is GeometryType.POINT
        self.is_line = geometry_type is GeometryType.LINESTRING
        self.skipped = 0

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self) -> None:
        """
        Check field roles against the schema.

        Raises:
            ValidationError: Naming the first misconfigured field
        """
        self._validate_dtg()
        self._validate_lat_lon()
        self._validate_labels()

    def _validate_dtg(self) -> None:
        name = self.options.dtg_field
        spec = self.feature_type.attribute(name)
        if self.is_line:
            ok = isinstance(spec, ListAttributeSpec) and spec.element_type is SimpleType.DATE
            expected = "List[Date]"
        else:
            ok = isinstance(spec, SimpleAttributeSpec) and spec.data_type is SimpleType.DATE
            expected = "Date"
        if not ok:
            raise ValidationError(
                f"Invalid date field '{name}' requested for feature type "
                f"'{self.feature_type.type_name}': expected an attribute of type {expected}"
            )

    def _validate_lat_lon(self) -> None:
        lat_lon = self.options.lat_lon
        if lat_lon is not None:
            missing = [f for f in lat_lon if self.feature_type.index_of(f) == -1]
            if missing:
                raise ValidationError(
                    f"Invalid lat/lon fields {missing} requested for feature type "
                    f"'{self.feature_type.type_name}'"
                )
        elif self.feature_type.default_geometry is None:
            raise ValidationError(
                f"Feature type '{self.feature_type.type_name}' has no geometry and no lat/lon fields were given"
            )

    def _validate_labels(self) -> None:
        track = self.options.track_id_field
        if track is not None and track != TRACK_ID_FEATURE_ID and self.feature_type.index_of(track) == -1:
            raise ValidationError(
                f"Invalid track id field '{track}' requested for feature type '{self.feature_type.type_name}'"
            )
        label = self.options.label_field
        if label is not None and self.feature_type.index_of(label) == -1:
            raise ValidationError(
                f"Invalid label field '{label}' requested for feature type '{self.feature_type.type_name}'"
            )

    # =========================================================================
    # Field access
    # =========================================================================

    def _track_id(self, feature: Feature) -> Optional[str]:
        field = self.options.track_id_field
        if field is None:
            return None
        if field == TRACK_ID_FEATURE_ID:
            return feature.id
        value = feature.get(field)
        return str(value) if value is not None else None

    def _label(self, feature: Feature) -> Optional[int]:
        field = self.options.label_field
        if field is None:
            return None
        value = feature.get(field)
        return int(value) if value is not None else None

    def _orient(self, x: float, y: float) -> Tuple[float, float]:
        if self.options.axis_order is AxisOrder.LAT_LON:
            return to_float32(x), to_float32(y)
        return to_float32(y), to_float32(x)

    def _lat_lon(self, feature: Feature) -> Tuple[float, float]:
        if self.options.lat_lon is not None:
            lat_field, lon_field = self.options.lat_lon
            return to_float32(feature.get(lat_field)), to_float32(feature.get(lon_field))

        geometry = feature.geometry
        if not self.is_point:
            geometry = geometry.representative_point()
        x, y = geometry.coords[0]
        return self._orient(x, y)

    def _dtg(self, feature: Feature) -> int:
        value = feature.get(self.options.dtg_field)
        return self.now_ms if value is None else to_millis(value)

    # =========================================================================
    # Extraction
    # =========================================================================

    def extract(self, feature: Feature) -> PointTuple:
        """Single tuple for a non-line feature. Safe to call from worker threads."""
        lat, lon = self._lat_lon(feature)
        return PointTuple(
            lat=lat,
            lon=lon,
            dtg=self._dtg(feature),
            track=self._track_id(feature),
            label=self._label(feature),
        )

    def expand_line(self, feature: Feature) -> Iterator[PointTuple]:
        """
        One tuple per vertex of a line feature.

        A feature whose vertex count differs from its date count yields
        nothing and emits a SkippedRecordWarning, or raises ValidationError
        when ``strict`` is set.
        """
        points = [self._orient(x, y) for x, y in feature.geometry.coords]
        dates = feature.get(self.options.dtg_field) or []

        if len(points) != len(dates):
            message = (
                f"Mismatched geometries and dates for feature {feature.id}: "
                f"{len(points)} vertices, {len(dates)} dates"
            )
            if self.options.strict:
                raise ValidationError(message)
            self.skipped += 1
            logger.warning(f"{message} - skipping")
            warnings.warn(message, SkippedRecordWarning, stacklevel=2)
            return

        track = self._track_id(feature)
        label = self._label(feature)
        for (lat, lon), dtg in zip(points, dates):
            yield PointTuple(lat, lon, to_millis(dtg), track, label)

    def extract_all(self, features: Iterable[Feature]) -> Iterator[PointTuple]:
        """Lazily extract tuples for a stream of features, sequentially."""
        expand: Callable[[Feature], Iterable[PointTuple]]
        if self.is_line:
            expand = self.expand_line
        else:
            expand = lambda f: (self.extract(f),)
        for feature in features:
            yield from expand(feature)
