from pathlib import Path
from typing import Any, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pixel_tree_classifier.lib.logger import setup_logger

logger = setup_logger(__name__)

WIDTH = 28
NUM_PIXELS = WIDTH * WIDTH
NUM_CLASSES = 10

# 4-byte little-endian item count at the start of every dataset file
HEADER_DTYPE = np.dtype("<i4")


class DatasetLoadError(ValueError):
    """Raised when a dataset file is missing, unreadable or malformed."""


def _as_uint8_array(value: Any, name: str) -> np.ndarray:
    """Convert ``value`` to a read-only uint8 array, rejecting out of range values."""
    array = np.asarray(value)
    if array.size and array.dtype != np.uint8:
        if not np.issubdtype(array.dtype, np.integer):
            raise ValueError(f"{name} must contain integers, got {array.dtype}")
        if array.min() < 0 or array.max() > 255:
            raise ValueError(f"{name} must lie in [0, 255]")
    array = np.array(array, dtype=np.uint8, copy=True)
    array.flags.writeable = False
    return array


class Image(BaseModel):
    """A single square grayscale image, stored row-major."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    width: int = Field(WIDTH, description="Width and height of the image", ge=1)
    pixels: np.ndarray = Field(..., description="Row-major pixel intensities")

    @field_validator("pixels", mode="before")
    @classmethod
    def validate_pixels(cls, v: Any) -> np.ndarray:
        return _as_uint8_array(v, "pixels").reshape(-1)

    @model_validator(mode="after")
    def validate_size(self) -> "Image":
        if self.pixels.shape[0] != self.width * self.width:
            raise ValueError(
                f"Image must have {self.width * self.width} pixels, got {self.pixels.shape[0]}"
            )
        return self


class Dataset(BaseModel):
    """
    Images and their labels, index-aligned.

    ``images`` has one row of ``width * width`` intensities per example and
    ``labels`` holds the matching class in ``[0, NUM_CLASSES)``. Both arrays
    are read-only once the dataset is constructed.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    width: int = Field(WIDTH, description="Width and height of every image", ge=1)
    images: np.ndarray = Field(..., description="Pixel matrix of shape (N, width * width)")
    labels: np.ndarray = Field(..., description="Label vector of shape (N,)")

    @field_validator("images", mode="before")
    @classmethod
    def validate_images(cls, v: Any) -> np.ndarray:
        return _as_uint8_array(v, "images")

    @field_validator("labels", mode="before")
    @classmethod
    def validate_labels(cls, v: Any) -> np.ndarray:
        labels = _as_uint8_array(v, "labels")
        if labels.ndim != 1:
            raise ValueError("labels must be one-dimensional")
        if labels.size and labels.max() >= NUM_CLASSES:
            raise ValueError(f"labels must lie in [0, {NUM_CLASSES - 1}]")
        return labels

    @model_validator(mode="after")
    def validate_shapes(self) -> "Dataset":
        num_pixels = self.width * self.width
        if self.images.ndim == 1 and self.images.size == 0 and len(self.labels) == 0:
            return self
        if self.images.ndim != 2 or self.images.shape[1] != num_pixels:
            raise ValueError(
                f"images must have shape (N, {num_pixels}), got {self.images.shape}"
            )
        if self.images.shape[0] != self.labels.shape[0]:
            raise ValueError(
                f"images and labels differ in length: {self.images.shape[0]} != {self.labels.shape[0]}"
            )
        return self

    def __len__(self) -> int:
        return int(self.labels.shape[0])

    @property
    def num_pixels(self) -> int:
        return self.width * self.width

    def image(self, index: int) -> Image:
        """Return the image at ``index`` as an :class:`Image`."""
        return Image(width=self.width, pixels=self.images[index])

    @classmethod
    def load_from_file(cls, path: Union[str, Path], width: int = WIDTH) -> "Dataset":
        """
        Load a dataset from its binary file. The file has the following layout:
        - 4 bytes: N, the number of examples (little-endian signed integer)
        - N records of:
            - 1 byte: label (0-9)
            - width * width bytes: pixel intensities, row-major

        Raises:
            DatasetLoadError: if the file cannot be read or does not match the layout
        """
        path = Path(path)
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise DatasetLoadError(f"Could not read dataset file {path}: {e}") from e

        if len(raw) < HEADER_DTYPE.itemsize:
            raise DatasetLoadError(
                f"Dataset file {path} is too short to hold a header ({len(raw)} bytes)"
            )

        num_items = int(np.frombuffer(raw, dtype=HEADER_DTYPE, count=1)[0])
        if num_items < 0:
            raise DatasetLoadError(f"Dataset file {path} declares {num_items} items")

        record_size = 1 + width * width
        body_size = len(raw) - HEADER_DTYPE.itemsize
        expected_size = num_items * record_size
        if body_size < expected_size:
            raise DatasetLoadError(
                f"Dataset file {path} is truncated: expected {expected_size} bytes of records for {num_items} items, found {body_size}"
            )
        if body_size > expected_size:
            raise DatasetLoadError(
                f"Dataset file {path} has {body_size - expected_size} trailing bytes after {num_items} items"
            )

        records = np.frombuffer(
            raw, dtype=np.uint8, offset=HEADER_DTYPE.itemsize
        ).reshape(num_items, record_size)

        try:
            dataset = cls(
                width=width, images=records[:, 1:], labels=records[:, 0]
            )
        except ValueError as e:
            raise DatasetLoadError(f"Dataset file {path} is invalid: {e}") from e

        logger.info(f"Loaded {len(dataset)} items from {path}")
        return dataset

    def save_to_file(self, path: Union[str, Path]) -> None:
        """Write the dataset in the binary layout read by :meth:`load_from_file`."""
        path = Path(path)
        records = np.empty((len(self), 1 + self.num_pixels), dtype=np.uint8)
        records[:, 0] = self.labels
        records[:, 1:] = self.images

        with open(path, "wb") as f:
            f.write(np.array([len(self)], dtype=HEADER_DTYPE).tobytes())
            f.write(records.tobytes())

        logger.info(f"Saved {len(self)} items to {path}")
