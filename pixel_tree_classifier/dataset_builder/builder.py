import json
from pathlib import Path
from typing import Dict, List, Tuple, Union

import numpy as np
from PIL import Image as PILImage
from PIL import UnidentifiedImageError
from sklearn.model_selection import train_test_split
from tqdm import tqdm

from pixel_tree_classifier.lib import Dataset, setup_logger

from .config import DatasetConfig, ImageFormat

logger = setup_logger(__name__)

BINARIZE_THRESHOLD = 128


class DatasetBuilder:
    """Packs per-class image folders into train and test datasets."""

    def __init__(self, config: DatasetConfig):
        self.config = config
        self.label_mappings = config.label_mapping

    def _load_image(self, image_path: Path) -> np.ndarray:
        """Load one image as a flat row of grayscale intensities."""
        width = self.config.width
        with PILImage.open(image_path) as image:
            gray = image.convert("L").resize((width, width))
            pixels = np.asarray(gray, dtype=np.uint8).reshape(-1)

        if self.config.invert:
            pixels = 255 - pixels
        if self.config.binarize:
            pixels = np.where(pixels < BINARIZE_THRESHOLD, 0, 255).astype(np.uint8)
        return pixels

    def _load_from_directory(self, image_root: Path) -> Tuple[np.ndarray, np.ndarray]:
        """Load images and labels from the directory structure."""

        image_dirs = self.config.directory.image_dirs(image_root, self.config.classes)
        logger.debug(f"Loading images from {image_dirs}")

        suffixes = {format.value for format in ImageFormat}
        rows: List[np.ndarray] = []
        labels: List[int] = []

        for label, image_dir in image_dirs.items():
            if not image_dir.exists():
                raise ValueError(f"Directory {image_dir} does not exist for class {label}")
            if not image_dir.is_dir():
                raise ValueError(f"Directory {image_dir} is not a directory for class {label}")

            image_files = sorted(
                path for path in image_dir.iterdir() if path.suffix.lower() in suffixes
            )
            if len(image_files) == 0:
                logger.warning(f"No images found for class {label} in {image_dir}")
                continue

            limit = self.config.limit
            if limit is not None and len(image_files) > limit:
                logger.info(f"Limiting class {label} to {limit} of {len(image_files)} images")
                image_files = image_files[:limit]

            for image_path in tqdm(image_files, desc=f"Processing images for {label}"):
                try:
                    rows.append(self._load_image(image_path))
                except (OSError, UnidentifiedImageError) as e:
                    logger.error(f"Error processing image {image_path}: {e}")
                    continue
                labels.append(self.label_mappings[label])

        logger.info(f"Loaded {len(rows)} images for {len(self.config.classes)} classes")

        if not rows:
            return np.zeros((0, self.config.width**2), dtype=np.uint8), np.zeros(0, dtype=np.uint8)
        return np.stack(rows), np.array(labels, dtype=np.uint8)

    def build(
        self,
        image_root: Union[str, Path],
        random_state: int = 42,
    ) -> Dict[str, Dataset]:
        """
        Build the train and test datasets.

        Args:
            image_root: Path to the root directory containing images
            random_state: Random seed for reproducibility

        Returns:
            A dictionary mapping "train" and "test" to Dataset objects
        """
        logger.info("Starting to build datasets.")

        images, labels = self._load_from_directory(Path(image_root))
        if len(labels) == 0:
            raise ValueError(f"No valid images found in {image_root}")

        idx_train, idx_test = self._split_dataset(labels, random_state)

        datasets = {
            "train": Dataset(
                width=self.config.width, images=images[idx_train], labels=labels[idx_train]
            ),
            "test": Dataset(
                width=self.config.width, images=images[idx_test], labels=labels[idx_test]
            ),
        }

        logger.info("Datasets built successfully.")
        return datasets

    def _split_dataset(
        self, labels: np.ndarray, random_state: int
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Split the item positions into train and test positions.

        Args:
            labels: Label of every loaded item
            random_state: Random seed for reproducibility

        Returns:
            Tuple of (train positions, test positions)
        """
        positions = np.arange(len(labels))

        # If stratify is set, keep label proportions in both splits
        idx_train, idx_test = train_test_split(
            positions,
            test_size=self.config.split_mapping.test,
            random_state=random_state,
            stratify=labels if self.config.stratify else None,
        )
        return np.sort(idx_train), np.sort(idx_test)

    def save(self, datasets: Dict[str, Dataset], output_dir: Union[str, Path]) -> None:
        """
        Save the datasets to disk in the binary dataset format.

        Args:
            datasets: Dictionary mapping split names to Dataset objects
            output_dir: Directory to save the datasets to
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        for split_name, dataset in datasets.items():
            dataset.save_to_file(output_dir / f"{split_name}.bin")

        # Save a summary of the splits
        summary = {
            "width": self.config.width,
            "classes": self.label_mappings,
            "splits": {
                split_name: {
                    "size": len(dataset),
                    "label_counts": np.bincount(
                        dataset.labels, minlength=len(self.config.classes)
                    ).tolist(),
                }
                for split_name, dataset in datasets.items()
            },
        }

        with open(output_dir / "dataset_summary.json", "w") as f:
            json.dump(summary, f, indent=2)
