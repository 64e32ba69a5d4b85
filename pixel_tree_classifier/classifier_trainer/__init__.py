"""
Decision Tree Training Component.

This module provides functionality for:
- Growing a decision tree from a labeled image dataset
- Classifying images with a grown tree
- Scoring a tree against a test dataset and reporting the results
"""

from .config import TrainingConfig
from .impurity import SPLIT_THRESHOLD, gini_impurities, gini_impurity
from .trainer import Trainer
from .tree import (
    DEFAULT_THRESHOLD_RATIO,
    LeafNode,
    SplitNode,
    TreeNode,
    build_subtree,
    build_tree,
    classify,
    count_nodes,
    find_best_split,
    most_frequent_label,
    split_indices,
    tree_depth,
)

__all__ = [
    "TrainingConfig",
    "SPLIT_THRESHOLD",
    "gini_impurities",
    "gini_impurity",
    "Trainer",
    "DEFAULT_THRESHOLD_RATIO",
    "LeafNode",
    "SplitNode",
    "TreeNode",
    "build_subtree",
    "build_tree",
    "classify",
    "count_nodes",
    "find_best_split",
    "most_frequent_label",
    "split_indices",
    "tree_depth",
]
