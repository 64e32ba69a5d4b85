"""Tests for the weighted Gini impurity of pixel splits."""

import math

import numpy as np
import pytest

from pixel_tree_classifier.classifier_trainer.impurity import (
    gini_impurities,
    gini_impurity,
)


def test_pure_groups_have_zero_impurity(make_dataset):
    dataset = make_dataset([0, 0, 1, 1], overrides={2: {0: 255}, 3: {0: 255}}, width=2)
    assert gini_impurity(dataset, np.arange(4), 0) == 0.0


def test_mixed_groups_weighted_by_size(make_dataset):
    # Group A: labels [0, 1] -> 0.5, group B: labels [1] -> 0.0
    dataset = make_dataset([0, 1, 1], overrides={2: {0: 200}}, width=2)
    assert gini_impurity(dataset, np.arange(3), 0) == pytest.approx(2 / 3 * 0.5)


def test_threshold_is_strictly_below_128(make_dataset):
    # 127 goes with 0, 128 goes with 255
    dataset = make_dataset(
        [0, 0, 1, 1], overrides={0: {0: 127}, 2: {0: 128}, 3: {0: 255}}, width=2
    )
    assert gini_impurity(dataset, np.arange(4), 0) == 0.0


def test_empty_group_gives_nan(make_dataset):
    dataset = make_dataset([0, 1, 2], width=2)
    assert math.isnan(gini_impurity(dataset, np.arange(3), 1))

    all_bright = make_dataset([0, 1, 2], width=2, background=255)
    assert math.isnan(gini_impurity(all_bright, np.arange(3), 1))


def test_only_subset_is_considered(make_dataset):
    dataset = make_dataset([0, 1, 5, 5], overrides={1: {0: 255}}, width=2)
    assert gini_impurity(dataset, np.array([0, 1]), 0) == 0.0
    assert math.isnan(gini_impurity(dataset, np.array([2, 3]), 0))


def test_impurity_in_unit_interval_when_defined(random_binary_dataset):
    indices = np.arange(len(random_binary_dataset))
    for pixel in range(random_binary_dataset.num_pixels):
        value = gini_impurity(random_binary_dataset, indices, pixel)
        if not math.isnan(value):
            assert 0.0 <= value <= 1.0


def test_all_pixels_match_single_pixel(random_binary_dataset):
    indices = np.arange(0, len(random_binary_dataset), 2)
    values = gini_impurities(random_binary_dataset, indices)

    assert values.shape == (random_binary_dataset.num_pixels,)
    expected = [
        gini_impurity(random_binary_dataset, indices, pixel)
        for pixel in range(random_binary_dataset.num_pixels)
    ]
    np.testing.assert_allclose(values, expected, rtol=0, atol=1e-12)


def test_all_pixels_marks_empty_groups_nan(make_dataset):
    dataset = make_dataset([0, 1], overrides={1: {2: 255}}, width=2)
    values = gini_impurities(dataset, np.arange(2))
    assert np.isnan(values[[0, 1, 3]]).all()
    assert values[2] == 0.0
