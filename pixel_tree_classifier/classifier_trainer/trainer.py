import json
import os
from typing import Any, Dict, List, Optional, cast

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from sklearn.metrics import classification_report, confusion_matrix
from tqdm import tqdm

from pixel_tree_classifier.classifier_trainer.config import TrainingConfig
from pixel_tree_classifier.classifier_trainer.tree import (
    TreeNode,
    build_tree,
    classify,
    count_nodes,
    tree_depth,
)
from pixel_tree_classifier.lib.logger import setup_logger
from pixel_tree_classifier.lib.models import NUM_CLASSES, Dataset

logger = setup_logger(__name__)

LABELS = list(range(NUM_CLASSES))
LABEL_NAMES = [str(label) for label in LABELS]


def _to_native(value: Any) -> Any:
    """json.dump fallback for numpy scalars."""
    if isinstance(value, np.generic):
        return value.item()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class Trainer:
    """
    Grows a decision tree on a training dataset and scores it on test data.
    """

    def __init__(self, config: TrainingConfig, dataset: Dataset):
        self.config = config
        self.dataset = dataset
        self.tree: Optional[TreeNode] = None

        if len(dataset) == 0:
            raise ValueError("Training dataset must contain at least one item")

        logger.info(
            f"Training dataset loaded with {len(dataset)} items of {dataset.width}x{dataset.width} pixels."
        )
        self.train_distribution = self._get_label_distribution(dataset)

    def _get_label_distribution(self, dataset: Dataset) -> Dict[int, int]:
        """Get the distribution of labels in the dataset and warn about imbalance."""

        total_count = len(dataset)
        counts = np.bincount(dataset.labels, minlength=NUM_CLASSES)
        distribution = {label: int(counts[label]) for label in LABELS}

        present = [label for label in LABELS if distribution[label] > 0]
        ideal_percentage = 100 / len(present)

        imbalanced: List[int] = []
        for label in present:
            percentage = distribution[label] / total_count * 100
            if abs(percentage - ideal_percentage) > 5:
                imbalanced.append(label)

        if imbalanced:
            logger.warning(
                f"Label imbalance detected: {len(imbalanced)} out of {len(present)} labels deviate from {ideal_percentage:.1f}% by >5%."
            )
            for label in imbalanced:
                logger.warning(
                    f"Label {label} has {distribution[label]} items ({distribution[label] / total_count * 100:.1f}%)."
                )

        logger.debug(f"Label distribution: {distribution}")
        return distribution

    def train(self) -> TreeNode:
        """Grows the decision tree over the whole training dataset."""
        logger.info(
            f"Building decision tree with threshold ratio {self.config.threshold_ratio}..."
        )

        with tqdm(total=len(self.dataset), desc="Build", leave=False) as pbar:
            self.tree = build_tree(
                self.dataset,
                threshold_ratio=self.config.threshold_ratio,
                on_leaf=pbar.update,
            )

        leaves, splits = count_nodes(self.tree)
        logger.info(
            f"Decision tree built with {leaves} leaves, {splits} split nodes and depth {tree_depth(self.tree)}."
        )
        return self.tree

    def predict(self, dataset: Dataset) -> np.ndarray:
        """Classifies every image of ``dataset`` with the trained tree."""
        if self.tree is None:
            raise RuntimeError("Tree not trained yet.")
        if dataset.width != self.dataset.width:
            raise ValueError(
                f"Image width mismatch: trained on {self.dataset.width}, got {dataset.width}"
            )

        predictions = np.empty(len(dataset), dtype=np.int64)
        for i in tqdm(range(len(dataset)), desc="Classify", leave=False):
            predictions[i] = classify(self.tree, dataset.image(i))
        return predictions

    def evaluate(self, dataset: Dataset) -> Dict[str, Any]:
        """Evaluates the trained tree on ``dataset``."""
        logger.info(f"Evaluating on {len(dataset)} items...")
        predictions = self.predict(dataset)
        labels = dataset.labels.astype(np.int64)

        correct = int(np.sum(predictions == labels))
        accuracy = correct / len(dataset) if len(dataset) else 0.0

        logger.info(f"Correct predictions: {correct}/{len(dataset)}")
        logger.info(f"Accuracy: {accuracy:.4f}")

        report = cast(
            Dict[str, Any],
            classification_report(
                labels,
                predictions,
                labels=LABELS,
                target_names=LABEL_NAMES,
                output_dict=True,
                zero_division=0,
            ),
        )
        cm = confusion_matrix(labels, predictions, labels=LABELS)
        cm_df = pd.DataFrame(cm, index=LABEL_NAMES, columns=LABEL_NAMES)

        return {
            "correct": correct,
            "total": len(dataset),
            "accuracy": accuracy,
            "classification_report": report,
            "confusion_matrix": cm_df,
        }

    def save_report(self, results: Dict[str, Any], output_dir: str) -> None:
        """Saves the evaluation results as JSON and a confusion matrix plot."""
        os.makedirs(output_dir, exist_ok=True)
        cm_df: pd.DataFrame = results["confusion_matrix"]

        report_path = os.path.join(output_dir, "classification_report.json")
        with open(report_path, "w") as f:
            json.dump(
                {
                    "correct": results["correct"],
                    "total": results["total"],
                    "accuracy": results["accuracy"],
                    "threshold_ratio": self.config.threshold_ratio,
                    "classification_report": results["classification_report"],
                    "confusion_matrix": cm_df.values.tolist(),
                },
                f,
                indent=2,
                default=_to_native,
            )
        logger.info(f"Classification report saved to {report_path}")

        try:
            plt.figure(figsize=(10, 7))
            sns.heatmap(cm_df, annot=True, fmt="d", cmap="Blues")
            plt.title("Confusion Matrix")
            plt.ylabel("Actual")
            plt.xlabel("Predicted")
            cm_path = os.path.join(output_dir, "confusion_matrix.png")
            plt.savefig(cm_path)
            logger.info(f"Confusion matrix saved to {cm_path}")
        except Exception as e:
            logger.error(f"Could not generate or save confusion matrix plot: {e}")
        finally:
            plt.close()
