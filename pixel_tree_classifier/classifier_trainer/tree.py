"""
Decision tree induction over per-pixel binary splits.

The tree is grown greedily: every subset whose majority label covers less
than ``threshold_ratio`` of its examples is split on the pixel with the
lowest weighted Gini impurity, and both halves are grown in turn.
"""

from typing import Callable, List, NamedTuple, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from pixel_tree_classifier.lib.models import NUM_CLASSES, Dataset, Image

from .impurity import SPLIT_THRESHOLD, gini_impurities

DEFAULT_THRESHOLD_RATIO = 0.95


class LeafNode(BaseModel):
    """Terminal node carrying the predicted label."""

    model_config = ConfigDict(frozen=True)

    classification: int = Field(..., ge=0, lt=NUM_CLASSES)


class SplitNode(BaseModel):
    """
    Internal node testing a single pixel.

    ``left`` holds the examples that were below 128 at ``pixel`` during
    training, ``right`` the rest.
    """

    model_config = ConfigDict(frozen=True)

    pixel: int = Field(..., ge=0)
    left: "TreeNode"
    right: "TreeNode"


TreeNode = Union[LeafNode, SplitNode]

SplitNode.model_rebuild()


def most_frequent_label(dataset: Dataset, indices: np.ndarray) -> Tuple[int, int]:
    """
    Find the most frequent label among the examples in ``indices``.

    Returns:
        The label and its number of occurrences. Ties go to the smallest label.
    """
    if len(indices) == 0:
        raise ValueError("Cannot take the majority label of an empty subset")

    counts = np.bincount(dataset.labels[indices], minlength=NUM_CLASSES)
    # argmax returns the first maximum, i.e. the smallest label
    label = int(np.argmax(counts))
    return label, int(counts[label])


def find_best_split(dataset: Dataset, indices: np.ndarray) -> Optional[int]:
    """
    Find the pixel whose split of ``indices`` has the lowest Gini impurity.

    Pixels that leave one side empty have an undefined (NaN) impurity and are
    never chosen. Among equally good pixels the smallest index wins.

    Returns:
        The pixel index, or None if no pixel separates the subset.
    """
    impurities = gini_impurities(dataset, indices)
    candidates = np.flatnonzero(~np.isnan(impurities))
    if len(candidates) == 0:
        return None

    return int(candidates[np.argmin(impurities[candidates])])


def split_indices(
    dataset: Dataset, indices: np.ndarray, pixel: int
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Divide ``indices`` by the intensity of their images at ``pixel``.

    Returns:
        Tuple of (indices below 128, remaining indices), each in input order.
    """
    indices = np.asarray(indices, dtype=np.intp)
    below = dataset.images[indices, pixel] < SPLIT_THRESHOLD
    return indices[below], indices[~below]


class _Frame(NamedTuple):
    indices: np.ndarray
    fallback_label: Optional[int]


def _grow(
    dataset: Dataset,
    frame: _Frame,
    threshold_ratio: float,
) -> Union[LeafNode, Tuple[int, _Frame, _Frame]]:
    """Decide a single node: either a leaf, or a pixel and the two child frames."""
    if len(frame.indices) == 0:
        if frame.fallback_label is None:
            raise ValueError("Cannot build a tree node from an empty subset")
        return LeafNode(classification=frame.fallback_label)

    label, count = most_frequent_label(dataset, frame.indices)
    if count / len(frame.indices) >= threshold_ratio:
        return LeafNode(classification=label)

    pixel = find_best_split(dataset, frame.indices)
    if pixel is None:
        # Every remaining image looks the same to the split rule
        return LeafNode(classification=label)

    left, right = split_indices(dataset, frame.indices, pixel)
    return pixel, _Frame(left, label), _Frame(right, label)


def build_subtree(
    dataset: Dataset,
    indices: np.ndarray,
    threshold_ratio: float = DEFAULT_THRESHOLD_RATIO,
    fallback_label: Optional[int] = None,
    on_leaf: Optional[Callable[[int], None]] = None,
) -> TreeNode:
    """
    Build the decision tree for the examples in ``indices``.

    Args:
        dataset: Dataset the indices point into
        indices: Positions of the examples belonging to this subtree
        threshold_ratio: Majority ratio at or above which a subset becomes a leaf
        fallback_label: Label of the leaf emitted when ``indices`` is empty
        on_leaf: Called with the number of examples of every leaf emitted

    Returns:
        The root of the subtree
    """
    if not 0 < threshold_ratio <= 1:
        raise ValueError(f"threshold_ratio must lie in (0, 1], got {threshold_ratio}")

    # Nodes are created children first. ``work`` holds frames still to be
    # decided and the pixels of split nodes waiting for both children, and
    # ``built`` holds finished subtrees in left-to-right order.
    work: List[Union[_Frame, int]] = [
        _Frame(np.asarray(indices, dtype=np.intp), fallback_label)
    ]
    built: List[TreeNode] = []

    while work:
        item = work.pop()
        if not isinstance(item, _Frame):
            right = built.pop()
            left = built.pop()
            built.append(SplitNode(pixel=item, left=left, right=right))
            continue

        decision = _grow(dataset, item, threshold_ratio)
        if isinstance(decision, LeafNode):
            if on_leaf is not None:
                on_leaf(len(item.indices))
            built.append(decision)
            continue

        pixel, left_frame, right_frame = decision
        work.append(pixel)
        work.append(right_frame)
        work.append(left_frame)

    return built.pop()


def build_tree(
    dataset: Dataset,
    threshold_ratio: float = DEFAULT_THRESHOLD_RATIO,
    on_leaf: Optional[Callable[[int], None]] = None,
) -> TreeNode:
    """Build a decision tree over every example of ``dataset``."""
    if len(dataset) == 0:
        raise ValueError("Cannot build a decision tree from an empty dataset")

    return build_subtree(
        dataset,
        np.arange(len(dataset)),
        threshold_ratio=threshold_ratio,
        on_leaf=on_leaf,
    )


def classify(tree: TreeNode, image: Image) -> int:
    """
    Predict the label of ``image``.

    A split node sends the image left only when its intensity at the node's
    pixel is exactly 0, which matches training on images binarized to 0/255.
    """
    node = tree
    while isinstance(node, SplitNode):
        if image.pixels[node.pixel] == 0:
            node = node.left
        else:
            node = node.right
    return node.classification


def tree_depth(tree: TreeNode) -> int:
    """Number of edges on the longest root-to-leaf path."""
    deepest = 0
    stack = [(tree, 0)]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        if isinstance(node, SplitNode):
            stack.append((node.left, depth + 1))
            stack.append((node.right, depth + 1))
    return deepest


def count_nodes(tree: TreeNode) -> Tuple[int, int]:
    """
    Count the nodes of ``tree``.

    Returns:
        Tuple of (number of leaves, number of split nodes)
    """
    leaves = splits = 0
    stack: List[TreeNode] = [tree]
    while stack:
        node = stack.pop()
        if isinstance(node, SplitNode):
            splits += 1
            stack.append(node.left)
            stack.append(node.right)
        else:
            leaves += 1
    return leaves, splits
