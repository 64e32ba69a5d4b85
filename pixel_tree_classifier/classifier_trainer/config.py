from pydantic import BaseModel, Field

from pixel_tree_classifier.lib.models import WIDTH

from .tree import DEFAULT_THRESHOLD_RATIO


class TrainingConfig(BaseModel):
    """Configuration for training a decision tree classifier."""

    threshold_ratio: float = Field(
        DEFAULT_THRESHOLD_RATIO,
        description="Majority ratio at or above which a subset becomes a leaf",
        gt=0,
        le=1,
    )
    width: int = Field(
        WIDTH, description="Width and height of the images in the dataset files", ge=1
    )
