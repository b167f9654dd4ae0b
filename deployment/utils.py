import json
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml
from ape.api import ProviderAPI

YAML_SUFFIXES = (".yml", ".yaml")
STANDARD_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> Any:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def load_config(filepath: Path) -> Any:
    """Loads a JSON or YAML file depending on its suffix."""
    if Path(filepath).suffix in YAML_SUFFIXES:
        return _load_yaml(filepath)
    return _load_json(filepath)


def write_json_atomically(data: Any, filepath: Path) -> Path:
    """
    Writes data as JSON to a temporary file next to filepath, then renames it
    over filepath so readers never observe a partially written file.
    """
    filepath.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(
        dir=filepath.parent, prefix=f".{filepath.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w") as file:
            json.dump(data, file, **STANDARD_JSON_FORMAT)
            file.write("\n")
            file.flush()
            os.fsync(file.fileno())
        os.replace(temp_name, filepath)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise
    return filepath


def check_infura_plugin(provider: ProviderAPI) -> None:
    """Checks that the ape-infura plugin is installed and that its API key is set."""
    if provider.name != "infura":
        return  # unnecessary when using a provider different than infura
    try:
        import ape_infura  # noqa: F401
        from ape_infura.provider import _ENVIRONMENT_VARIABLE_NAMES
    except ImportError:
        raise ImportError("Please install the ape-infura plugin to deploy via Infura.")
    for envvar in _ENVIRONMENT_VARIABLE_NAMES:
        api_key = os.environ.get(envvar)
        if api_key:
            break
    else:
        raise ValueError(
            f"No Infura API key found in "
            f"environment variables: {', '.join(_ENVIRONMENT_VARIABLE_NAMES)}"
        )
