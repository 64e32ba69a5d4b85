"""
Dataset Construction Component for the Pixel Tree Classifier.

This module provides functionality for:
- Loading and validating configuration for dataset construction
- Associating images with labels based on directory structure
- Converting images to fixed-size grayscale pixel rows
- Splitting the dataset into train and test sets
- Saving the splits in the binary dataset format
"""

from .builder import DatasetBuilder
from .config import DatasetConfig, DatasetSplit, DirectoryConfig, ImageFormat

__all__ = [
    "DatasetBuilder",
    "DatasetConfig",
    "DatasetSplit",
    "DirectoryConfig",
    "ImageFormat",
]
