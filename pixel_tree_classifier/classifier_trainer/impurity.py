"""Weighted Gini impurity of per-pixel binary splits."""

import numpy as np

from pixel_tree_classifier.lib.models import NUM_CLASSES, Dataset

# Intensities strictly below this value go to the left child during training
SPLIT_THRESHOLD = 128


def _group_gini(counts: np.ndarray, size: np.ndarray) -> np.ndarray:
    """
    Gini impurity ``1 - sum(p ** 2)`` of label counts.

    ``counts`` has labels on its last axis. A group of size zero produces
    NaN (0 / 0), which is returned as is.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        proportions = counts / size[..., np.newaxis]
    return 1.0 - np.sum(proportions**2, axis=-1)


def gini_impurity(dataset: Dataset, indices: np.ndarray, pixel: int) -> float:
    """
    Compute the Gini impurity of splitting the images in ``indices`` at ``pixel``.

    Images whose intensity at ``pixel`` is below 128 form group A and the rest
    form group B. The result is the size-weighted average of the impurity of
    both groups. If either group is empty the result is NaN; callers must
    discard such pixels.
    """
    indices = np.asarray(indices, dtype=np.intp)
    below = dataset.images[indices, pixel] < SPLIT_THRESHOLD
    labels = dataset.labels[indices]

    a_counts = np.bincount(labels[below], minlength=NUM_CLASSES).astype(np.float64)
    b_counts = np.bincount(labels[~below], minlength=NUM_CLASSES).astype(np.float64)
    sizes = np.array([a_counts.sum(), b_counts.sum()])

    gini = _group_gini(np.stack([a_counts, b_counts]), sizes)
    return float((gini[0] * sizes[0] + gini[1] * sizes[1]) / len(indices))


def gini_impurities(dataset: Dataset, indices: np.ndarray) -> np.ndarray:
    """
    Compute :func:`gini_impurity` for every pixel of the images in ``indices``.

    Returns:
        A float array with one entry per pixel, NaN where a split leaves one
        side empty.
    """
    indices = np.asarray(indices, dtype=np.intp)
    below = dataset.images[indices] < SPLIT_THRESHOLD
    labels = dataset.labels[indices]

    # (num_pixels, NUM_CLASSES) label counts on each side of every pixel
    a_counts = np.zeros((dataset.num_pixels, NUM_CLASSES), dtype=np.float64)
    for label in range(NUM_CLASSES):
        a_counts[:, label] = below[labels == label].sum(axis=0)
    b_counts = np.bincount(labels, minlength=NUM_CLASSES) - a_counts
    a_sizes = a_counts.sum(axis=1)
    b_sizes = b_counts.sum(axis=1)

    a_gini = _group_gini(a_counts, a_sizes)
    b_gini = _group_gini(b_counts, b_sizes)
    return (a_gini * a_sizes + b_gini * b_sizes) / len(indices)
