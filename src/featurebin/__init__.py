"""
featurebin: feature type spec language and compact BIN trajectory encoding.

Example:
    >>> from featurebin import create_type, encode_type
    >>> sft = create_type("tracks", "id:Integer,*geom:Point:srid=4326,dtg:Date")
    >>> encode_type(sft)
    'id:Integer,*geom:Point:srid=4326,dtg:Date'
"""

__version__ = "0.1.0"

from featurebin.errors import (
    FeatureBinError,
    ParseError,
    ValidationError,
    SkippedRecordWarning,
    FatalSinkError,
)
from featurebin.schema import (
    FeatureType,
    create_type,
    create_type_from_config,
    encode_type,
    parse_spec,
)
from featurebin.features import Feature, FeatureCollection
from featurebin.bin import BinCodec, BinEncodingOptions, PointTuple, encode_feature_collection

__all__ = [
    "FeatureBinError",
    "ParseError",
    "ValidationError",
    "SkippedRecordWarning",
    "FatalSinkError",
    "FeatureType",
    "create_type",
    "create_type_from_config",
    "encode_type",
    "parse_spec",
    "Feature",
    "FeatureCollection",
    "BinCodec",
    "BinEncodingOptions",
    "PointTuple",
    "encode_feature_collection",
]
