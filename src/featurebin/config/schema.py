"""
Configuration schemas for featurebin using Pydantic.

Provides validated models for:
- Feature type construction from structured config (YAML or dicts)
- BIN encoding field-role options

Keys are hyphenated in configuration files (``type-name``, ``index-value``,
``dtg-field``); the snake_case field names are accepted as well.
"""

import os
from enum import Enum
from typing import Any, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ENCODE_THREADS_ENV = "FEATUREBIN_ENCODE_THREADS"
DEFAULT_ENCODE_THREADS = 8


def _hyphenate(name: str) -> str:
    return name.replace("_", "-")


def default_encode_threads() -> int:
    """Worker pool size from the environment, falling back to 8."""
    value = os.getenv(ENCODE_THREADS_ENV)
    if value is None:
        return DEFAULT_ENCODE_THREADS
    try:
        threads = int(value)
    except ValueError:
        raise ValueError(f"{ENCODE_THREADS_ENV} must be an integer, got '{value}'")
    if threads < 1:
        raise ValueError(f"{ENCODE_THREADS_ENV} must be >= 1, got {threads}")
    return threads


class ConfigModel(BaseModel):
    """Shared settings: hyphenated aliases, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=_hyphenate,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# Feature Type Configuration
# =============================================================================


class AttributeConfig(ConfigModel):
    """
    One field of a feature type.

    ``index`` accepts NONE/JOIN/FULL (any case) or a legacy boolean.
    ``srid`` and ``default`` only apply to geometry types.
    """

    name: str
    type: str
    index: Union[bool, str] = "none"
    index_value: bool = False
    cardinality: str = "unknown"
    srid: Optional[int] = None
    default: bool = False

    @field_validator("name", "type")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class FeatureTypeConfig(ConfigModel):
    """
    Structured feature type definition.

    Example:
        ```yaml
        type-name: example:tracks
        dtg-field: dtg
        fields:
          - { name: id, type: Integer, index: full }
          - { name: dtg, type: Date }
          - { name: geom, type: Point, srid: 4326, default: true }
        ```
    """

    type_name: str
    fields: List[AttributeConfig]
    dtg_field: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def accept_attributes_key(cls, data: Any) -> Any:
        """``attributes`` is accepted in place of ``fields``."""
        if isinstance(data, dict) and "fields" not in data and "attributes" in data:
            data = dict(data)
            data["fields"] = data.pop("attributes")
        return data


# =============================================================================
# BIN Encoding Configuration
# =============================================================================


class AxisOrder(str, Enum):
    """Order in which geometry coordinates are reported."""

    LAT_LON = "LAT_LON"
    LON_LAT = "LON_LAT"


class BinEncodingOptions(ConfigModel):
    """
    Field roles and execution settings for BIN encoding.

    Attributes:
        dtg_field: Date attribute (or List[Date] for line geometries)
        track_id_field: Attribute used as track id; ``"id"`` uses the feature id
        label_field: Attribute encoded as the 8-byte label (extended records)
        lat_lon: Explicit (lat, lon) attribute names overriding the geometry
        axis_order: Coordinate order of the geometry
        sort: Sort output by timestamp
        num_threads: Worker pool size for point collections
        strict: Fail on line records whose vertex and date counts differ
    """

    dtg_field: str
    track_id_field: Optional[str] = None
    label_field: Optional[str] = None
    lat_lon: Optional[Tuple[str, str]] = None
    axis_order: AxisOrder = AxisOrder.LAT_LON
    sort: bool = False
    num_threads: int = Field(default_factory=default_encode_threads, ge=1)
    strict: bool = False

    @field_validator("axis_order", mode="before")
    @classmethod
    def normalize_axis_order(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper().replace("-", "_")
        return v

    @property
    def extended(self) -> bool:
        """Whether records carry a label (24-byte variant)."""
        return self.label_field is not None
