from pathlib import Path

import typer
from pydantic import ValidationError

from pixel_tree_classifier.lib.config import load_config_data

from .builder import DatasetBuilder
from .config import DatasetConfig

app = typer.Typer(help="Dataset Construction Component")


@app.command()
def build(
    image_dir: str = typer.Argument(..., help="Path to the root image directory"),
    config_file: str = typer.Argument(
        ..., help="Path to the configuration file (YAML/JSON)"
    ),
    output_dir: str = typer.Argument(..., help="Path to save the output datasets"),
    random_state: int = typer.Option(42, help="Random seed for reproducibility"),
):
    """
    Build train and test dataset files by associating images with labels and splitting them.
    """
    try:
        # Parse and validate the configuration
        try:
            config = DatasetConfig.model_validate(load_config_data(config_file))
        except ValidationError as e:
            typer.echo(f"Configuration validation error: {e}", err=True)
            raise typer.Exit(code=1)

        # Build the datasets
        builder = DatasetBuilder(config)
        try:
            datasets = builder.build(image_root=image_dir, random_state=random_state)
        except Exception as e:
            typer.echo(f"Error building datasets: {e}", err=True)
            raise typer.Exit(code=1)

        # Save the datasets
        builder.save(datasets, output_dir)

        typer.echo(f"Datasets successfully built and saved to {output_dir}")
        for split_name, dataset in datasets.items():
            typer.echo(
                f"  - {split_name.capitalize()} set: {len(dataset)} images -> {Path(output_dir) / f'{split_name}.bin'}"
            )

    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
