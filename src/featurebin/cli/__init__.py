"""
featurebin CLI package.

Provides modular command implementations for the featurebin CLI.
"""

from .base import CLICommand, FeatureTypeCommand
from .spec import SpecCommand
from .encode import EncodeCommand
from .decode import DecodeCommand

__all__ = [
    "CLICommand",
    "FeatureTypeCommand",
    "SpecCommand",
    "EncodeCommand",
    "DecodeCommand",
]
