"""Tests for the command line entry points."""

import numpy as np
import pytest
from typer.testing import CliRunner

from pixel_tree_classifier.classifier_trainer.cli import app
from pixel_tree_classifier.lib.models import NUM_PIXELS, Dataset

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_progress_bars(monkeypatch):
    monkeypatch.setenv("TQDM_DISABLE", "1")


@pytest.fixture
def digit_files(tmp_path):
    """Ten distinct binarized images, one per label, saved as train and test files."""
    images = np.zeros((10, NUM_PIXELS), dtype=np.uint8)
    for label in range(10):
        images[label, label * 20 : label * 20 + 20] = 255
    dataset = Dataset(images=images, labels=np.arange(10))

    train_path = tmp_path / "train.bin"
    test_path = tmp_path / "test.bin"
    dataset.save_to_file(train_path)
    dataset.save_to_file(test_path)
    return train_path, test_path


def _last_line(output: str) -> str:
    return output.strip().splitlines()[-1]


def test_prints_number_of_correct_predictions(digit_files):
    train_path, test_path = digit_files
    result = runner.invoke(app, [str(train_path), str(test_path)])
    assert result.exit_code == 0, result.output
    assert _last_line(result.stdout) == "10"


def test_counts_mismatches(tmp_path, digit_files):
    train_path, _ = digit_files
    images = np.zeros((2, NUM_PIXELS), dtype=np.uint8)
    images[:, 0:20] = 255
    # Both look like a 0, only the first is labelled 0
    mislabelled = tmp_path / "mislabelled.bin"
    Dataset(images=images, labels=[0, 5]).save_to_file(mislabelled)

    result = runner.invoke(app, [str(train_path), str(mislabelled)])
    assert result.exit_code == 0, result.output
    assert _last_line(result.stdout) == "1"


def test_missing_file_exits_with_error(tmp_path, digit_files):
    train_path, _ = digit_files
    result = runner.invoke(app, [str(train_path), str(tmp_path / "nope.bin")])
    assert result.exit_code == 1


def test_truncated_file_exits_with_error(tmp_path, digit_files):
    _, test_path = digit_files
    truncated = tmp_path / "truncated.bin"
    truncated.write_bytes(test_path.read_bytes()[:-10])
    result = runner.invoke(app, [str(truncated), str(test_path)])
    assert result.exit_code == 1


def test_requires_both_arguments(digit_files):
    train_path, _ = digit_files
    result = runner.invoke(app, [str(train_path)])
    assert result.exit_code != 0


def test_config_file(tmp_path, digit_files):
    train_path, test_path = digit_files
    config_path = tmp_path / "config.yaml"
    config_path.write_text("threshold_ratio: 0.9\n")

    result = runner.invoke(
        app, [str(train_path), str(test_path), "--config", str(config_path)]
    )
    assert result.exit_code == 0, result.output
    assert _last_line(result.stdout) == "10"


def test_json_config_file(tmp_path, digit_files):
    train_path, test_path = digit_files
    config_path = tmp_path / "config.json"
    config_path.write_text('{"threshold_ratio": 1.0, "width": 28}')

    result = runner.invoke(
        app, [str(train_path), str(test_path), "--config", str(config_path)]
    )
    assert result.exit_code == 0, result.output


@pytest.mark.parametrize(
    "name, content",
    [("bad.yaml", "threshold_ratio: 2\n"), ("bad.txt", "threshold_ratio: 0.9\n")],
)
def test_invalid_config_exits_with_error(tmp_path, digit_files, name, content):
    train_path, test_path = digit_files
    config_path = tmp_path / name
    config_path.write_text(content)

    result = runner.invoke(
        app, [str(train_path), str(test_path), "--config", str(config_path)]
    )
    assert result.exit_code == 1


def test_report_dir(tmp_path, digit_files):
    train_path, test_path = digit_files
    report_dir = tmp_path / "report"

    result = runner.invoke(
        app, [str(train_path), str(test_path), "--report-dir", str(report_dir)]
    )
    assert result.exit_code == 0, result.output
    assert (report_dir / "classification_report.json").exists()
    assert (report_dir / "confusion_matrix.png").exists()
