from enum import Enum
from pathlib import Path
import re
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from pixel_tree_classifier.lib.models import NUM_CLASSES, WIDTH


class ImageFormat(str, Enum):
    PNG = ".png"
    JPG = ".jpg"
    JPEG = ".jpeg"
    GIF = ".gif"
    BMP = ".bmp"
    WEBP = ".webp"


class DatasetSplit(BaseModel):
    """
    Ratios of the train and test splits.

    Both ratios must be strictly between 0 and 1 and sum to 1.
    """

    train: float = Field(..., description="Ratio of training data", gt=0, lt=1)
    test: float = Field(..., description="Ratio of test data", gt=0, lt=1)

    @model_validator(mode="after")
    def validate_split_sum(self) -> "DatasetSplit":
        """Validate that the ratios sum to 1."""
        if abs(self.train + self.test - 1) > 1e-9:
            raise ValueError("train and test ratios must sum to 1")
        return self


class DirectoryConfig(BaseModel):
    """Configuration for directory structure-based label extraction."""

    pattern: str = Field(
        "{label}",
        description="Pattern of the directory holding the images of a class, relative to the image root. This must include a {label} placeholder.",
        examples=["{label}", "digits/{label}"],
    )

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        """Validate that pattern contains exactly one {label} placeholder."""
        if not re.search(r"\{.*\}", v):
            raise ValueError("pattern must contain valid placeholders")
        if "{label}" not in v:
            raise ValueError("pattern must contain {label} placeholder")
        if v.count("{label}") > 1:
            raise ValueError("pattern must contain only one {label} placeholder")
        return v

    def image_dirs(self, root: Path, labels: List[str]) -> Dict[str, Path]:
        """Path to the directory containing the images for each label."""

        return {label: root / self.pattern.format(label=label) for label in labels}


class DatasetConfig(BaseModel):
    """Main configuration for packing image folders into dataset files."""

    classes: List[str] = Field(
        ...,
        description="Class names; the label of a class is its position in this list",
    )
    directory: DirectoryConfig = Field(
        default_factory=DirectoryConfig,
        description="Where to find the images of every class",
    )
    split_mapping: DatasetSplit = Field(
        default=DatasetSplit(train=0.8, test=0.2),
        description="Mapping of dataset splits.",
    )
    width: int = Field(WIDTH, description="Width and height of the packed images", ge=1)
    binarize: bool = Field(
        True, description="Map intensities below 128 to 0 and the rest to 255"
    )
    invert: bool = Field(
        False, description="Invert intensities (for dark digits on a light background)"
    )
    stratify: bool = Field(
        False, description="Keep label proportions equal across the splits"
    )
    limit: Optional[int] = Field(
        None, description="Limit the number of images loaded per class", ge=1
    )

    @field_validator("classes")
    @classmethod
    def validate_classes(cls, v: List[str]) -> List[str]:
        """Validate that there are between 1 and NUM_CLASSES distinct classes."""
        if not v:
            raise ValueError("classes must not be empty")
        if len(v) > NUM_CLASSES:
            raise ValueError(f"at most {NUM_CLASSES} classes are supported")
        if len(set(v)) != len(v):
            raise ValueError("classes must be distinct")
        return v

    @property
    def label_mapping(self) -> Dict[str, int]:
        return {name: idx for idx, name in enumerate(self.classes)}
