import logging
from typing import Optional

import typer
from pydantic import ValidationError

from pixel_tree_classifier.lib.config import load_config_data
from pixel_tree_classifier.lib.logger import set_package_level, setup_logger
from pixel_tree_classifier.lib.models import Dataset

from .config import TrainingConfig
from .trainer import Trainer

app = typer.Typer(help="Decision Tree Training Component")

logger = setup_logger(__name__)


@app.command()
def run(
    training_data: str = typer.Argument(..., help="Path to the training data file"),
    testing_data: str = typer.Argument(..., help="Path to the testing data file"),
    config_file: Optional[str] = typer.Option(
        None, "--config", help="Path to the training configuration file (YAML/JSON)"
    ),
    report_dir: Optional[str] = typer.Option(
        None, help="Directory to save the classification report and confusion matrix"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Emit debug log messages"),
):
    """
    Build a decision tree from the training data, classify every testing image
    and print the number of correct predictions.
    """
    if verbose:
        set_package_level(logging.DEBUG)

    try:
        # Parse and validate the configuration
        try:
            config_data = load_config_data(config_file) if config_file else {}
            config = TrainingConfig.model_validate(config_data)
        except ValidationError as e:
            logger.critical(e, exc_info=True)
            raise typer.Exit(code=1)

        # Load both datasets before any training
        training_dataset = Dataset.load_from_file(training_data, width=config.width)
        testing_dataset = Dataset.load_from_file(testing_data, width=config.width)

        trainer = Trainer(config, training_dataset)
        trainer.train()
        logger.info("Training completed successfully.")

        results = trainer.evaluate(testing_dataset)
        if report_dir:
            trainer.save_report(results, report_dir)

        typer.echo(results["correct"])
    except typer.Exit:
        raise
    except Exception as e:
        logger.critical(e, exc_info=True)

        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
