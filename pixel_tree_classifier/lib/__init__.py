"""
Utility library for the pixel tree classifier.

This module provides the dataset models and common utilities used across the
package components.
"""

from .logger import setup_logger, set_package_level
from .config import load_config_data
from .models import (
    NUM_CLASSES,
    NUM_PIXELS,
    WIDTH,
    Dataset,
    DatasetLoadError,
    Image,
)

__all__ = [
    "setup_logger",
    "set_package_level",
    "load_config_data",
    "NUM_CLASSES",
    "NUM_PIXELS",
    "WIDTH",
    "Dataset",
    "DatasetLoadError",
    "Image",
]
