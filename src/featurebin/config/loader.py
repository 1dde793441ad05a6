"""
YAML configuration loader for featurebin.

Loads feature type definitions and BIN encoding options from YAML and
validates them with the Pydantic schemas. Supports ``${param}``
substitution from runtime parameters and environment variables.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from featurebin.config.schema import AttributeConfig, BinEncodingOptions, FeatureTypeConfig
from featurebin.schema.attributes import (
    GeometryAttributeSpec,
    ListAttributeSpec,
    MapAttributeSpec,
    SimpleAttributeSpec,
)

logger = logging.getLogger(__name__)

ENCODING_SECTION = "encoding"


def substitute_params(obj: Any, params: Dict[str, Any]) -> Any:
    """
    Recursively substitute ``${param}`` placeholders.

    Runtime params take priority over environment variables.

    Example:
        >>> substitute_params({"type-name": "${name}"}, {"name": "tracks"})
        {'type-name': 'tracks'}

    Raises:
        ValueError: If a placeholder is found in neither source
    """
    if isinstance(obj, str):
        match = re.fullmatch(r'\$\{(\w+)\}', obj)
        if match:
            param_name = match.group(1)
            if param_name in params:
                return params[param_name]
            env_value = os.getenv(param_name)
            if env_value is not None:
                return env_value
            raise ValueError(
                f"Missing parameter: {param_name}. "
                f"Not found in runtime parameters {list(params.keys())} "
                f"or environment variables."
            )
        return obj
    elif isinstance(obj, dict):
        return {k: substitute_params(v, params) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [substitute_params(item, params) for item in obj]
    else:
        return obj


def load_yaml(path: Path) -> Dict[str, Any]:
    """
    Load a YAML mapping from disk.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If YAML is malformed or not a mapping
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, 'r') as f:
        try:
            config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}")

    if not isinstance(config, dict):
        raise ValueError(f"Configuration must be a YAML dict, got {type(config)}")

    return config


def load_feature_type_config(
    path: Path,
    runtime_params: Optional[Dict[str, Any]] = None
) -> FeatureTypeConfig:
    """
    Load and validate a feature type definition.

    Raises:
        ValueError: If the file is malformed or fails validation
    """
    raw_config = substitute_params(load_yaml(path), runtime_params or {})
    try:
        return FeatureTypeConfig.model_validate(raw_config)
    except Exception as e:
        raise ValueError(f"Feature type configuration invalid in {path}:\n{e}")


def load_feature_type(path: Path, runtime_params: Optional[Dict[str, Any]] = None):
    """
    Load a YAML feature type definition and build the FeatureType.

    Example:
        ```python
        sft = load_feature_type(Path("configs/tracks.yaml"))
        print(encode_type(sft))
        ```
    """
    from featurebin.schema.builder import create_type_from_config

    return create_type_from_config(load_feature_type_config(path, runtime_params))


def load_encoding_options(
    path: Path,
    runtime_params: Optional[Dict[str, Any]] = None,
    **overrides: Any
) -> BinEncodingOptions:
    """
    Load BIN encoding options from the ``encoding`` section of a YAML file.

    Keyword overrides (e.g. from the command line) replace file values;
    ``None`` overrides are ignored.
    """
    raw_config = substitute_params(load_yaml(path), runtime_params or {})
    section = raw_config.get(ENCODING_SECTION) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{ENCODING_SECTION}' section in {path} must be a mapping")

    merged = dict(section)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return BinEncodingOptions.model_validate(merged)
    except Exception as e:
        raise ValueError(f"Encoding configuration invalid in {path}:\n{e}")


def feature_type_to_config(feature_type) -> FeatureTypeConfig:
    """
    Structured config equivalent of a built FeatureType.

    Feature options (table splitter) have no structured form and are
    dropped with a warning.
    """
    if feature_type.options:
        dropped = ", ".join(option.to_spec() for option in feature_type.options)
        logger.warning(
            f"Feature options of '{feature_type.type_name}' cannot be stored in YAML and are dropped: {dropped}"
        )
    fields = []
    for attribute in feature_type.attributes:
        if isinstance(attribute, GeometryAttributeSpec):
            fields.append(AttributeConfig(
                name=attribute.name,
                type=str(attribute.geometry_type),
                srid=attribute.srid,
                default=attribute.default,
            ))
            continue
        if isinstance(attribute, SimpleAttributeSpec):
            type_name = str(attribute.data_type)
        elif isinstance(attribute, ListAttributeSpec):
            type_name = f"List[{attribute.element_type}]"
        elif isinstance(attribute, MapAttributeSpec):
            type_name = f"Map[{attribute.key_type},{attribute.value_type}]"
        else:
            raise TypeError(f"Unsupported attribute spec: {attribute!r}")
        fields.append(AttributeConfig(
            name=attribute.name,
            type=type_name,
            index=str(attribute.index),
            index_value=attribute.index_value,
            cardinality=str(attribute.cardinality),
        ))
    return FeatureTypeConfig(
        type_name=feature_type.type_name,
        fields=fields,
        dtg_field=feature_type.default_date,
    )


def save_feature_type(feature_type, path: Path) -> None:
    """
    Write a FeatureType as a YAML feature type definition.

    Only non-default keys are written, so the file stays readable.
    """
    config_dict = feature_type_to_config(feature_type).model_dump(
        mode="json", by_alias=True, exclude_defaults=True
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)


def validate_config_file(path: Path, runtime_params: Union[Dict[str, Any], None] = None) -> bool:
    """
    Check that a YAML file builds a valid FeatureType.

    Returns:
        True if valid, False otherwise (prints errors)
    """
    try:
        load_feature_type(path, runtime_params)
        print(f"✓ Configuration valid: {path}")
        return True
    except Exception as e:
        print(f"✗ Configuration invalid: {path}")
        print(f"  Error: {e}")
        return False
