"""Data files exposed to templates.

Every ``.yaml``, ``.yml`` or ``.json`` file under the data directory becomes a
key named after its stem; subdirectories become nested mappings. For example
``data/i18n/es.yaml`` is available as ``data.i18n.es``.

Key functions:
- load_data: Load and merge the data directory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from .errors import DataError

logger = logging.getLogger(__name__)

DATA_SUFFIXES = (".yaml", ".yml", ".json")


def _load_file(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise DataError(path, f"could not parse data file: {exc}", exc) from exc


def _load_dir(directory: Path) -> dict[str, Any]:
    data: dict[str, Any] = {}
    origins: dict[str, Path] = {}
    for path in sorted(directory.iterdir()):
        if path.name.startswith((".", "_")):
            continue
        if path.is_dir():
            key, value = path.name, _load_dir(path)
        elif path.suffix.lower() in DATA_SUFFIXES:
            key, value = path.stem, _load_file(path)
        else:
            logger.debug("Skipping non-data file %s", path)
            continue
        if key in data:
            raise DataError(
                path,
                f"data key '{key}' is defined by both '{origins[key]}' and '{path}'",
            )
        data[key] = value
        origins[key] = path
    return data


def load_data(data_dir: Path) -> dict[str, Any]:
    """Load site data from the data directory.

    Args:
        data_dir: Directory holding data files (may not exist).

    Returns:
        Nested dictionary of all data.

    Raises:
        DataError: If a file cannot be parsed or two files define the same key.
    """
    if not data_dir.is_dir():
        return {}
    return _load_dir(data_dir)
