from typing import Callable, Dict, Optional, Sequence

import numpy as np
import pytest

from pixel_tree_classifier.lib.models import WIDTH, Dataset


@pytest.fixture
def make_dataset() -> Callable[..., Dataset]:
    """
    Factory for small datasets.

    ``overrides`` maps an example position to ``{pixel: intensity}``; every
    other pixel is ``background``.
    """

    def _make(
        labels: Sequence[int],
        overrides: Optional[Dict[int, Dict[int, int]]] = None,
        width: int = WIDTH,
        background: int = 0,
    ) -> Dataset:
        images = np.full((len(labels), width * width), background, dtype=np.uint8)
        for row, pixels in (overrides or {}).items():
            for pixel, value in pixels.items():
                images[row, pixel] = value
        return Dataset(width=width, images=images, labels=np.array(labels))

    return _make


@pytest.fixture
def random_binary_dataset() -> Dataset:
    """60 random 5x5 images with intensities in {0, 255} and random labels."""
    rng = np.random.default_rng(0)
    images = rng.choice(np.array([0, 255], dtype=np.uint8), size=(60, 25))
    labels = rng.integers(0, 10, size=60)
    return Dataset(width=5, images=images, labels=labels)
