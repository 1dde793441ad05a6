"""Configuration system for featurebin."""

from .schema import AttributeConfig, FeatureTypeConfig, BinEncodingOptions, AxisOrder
from .loader import (
    load_feature_type,
    load_feature_type_config,
    load_encoding_options,
    save_feature_type,
    validate_config_file,
)

__all__ = [
    "AttributeConfig",
    "FeatureTypeConfig",
    "BinEncodingOptions",
    "AxisOrder",
    "load_feature_type",
    "load_feature_type_config",
    "load_encoding_options",
    "save_feature_type",
    "validate_config_file",
]
