import json
from pathlib import Path
from typing import Any, Dict, Union

import yaml


def load_config_data(config_file: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a YAML or JSON configuration file into a plain dictionary.

    The result is meant to be passed to a pydantic model's ``model_validate``.
    An empty YAML file yields an empty dictionary so that model defaults apply.
    """
    config_path = Path(config_file)
    if config_path.suffix.lower() in [".yaml", ".yml"]:
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f)
    elif config_path.suffix.lower() == ".json":
        with open(config_path, "r") as f:
            config_data = json.load(f)
    else:
        raise ValueError(f"Unsupported config file format: {config_path.suffix}")

    if config_data is None:
        return {}
    if not isinstance(config_data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    return config_data
