from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml


def _read_structured(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as handle:
        if path.suffix in {".yaml", ".yml"}:
            return yaml.safe_load(handle)
        return json.load(handle)


def _load_data_with_error(
    path: Path,
    default: dict[str, Any],
) -> tuple[dict[str, Any], str | None]:
    """
    Load JSON/YAML and return (data, error_message).

    A missing file is not an error; parse/IO failures are reported so callers
    can fall back to defaults and say why.
    """
    if not path.exists():
        return default, None
    try:
        data = _read_structured(path)
        if data is None:
            return default, None
        if not isinstance(data, dict):
            return default, f"{path.name}: expected object, got {type(data).__name__}"
        return data, None
    except OSError as exc:
        return default, f"{path.name}: {exc.__class__.__name__}: {exc}"
    except json.JSONDecodeError as exc:
        return default, f"{path.name}: JSONDecodeError: {exc}"
    except yaml.YAMLError as exc:
        return default, f"{path.name}: YAMLError: {exc}"


def load_seed_records(path: Path) -> list[dict[str, Any]]:
    """Read client records from a YAML/JSON seed file.

    Accepts either a top-level list or a mapping with a ``clients`` list.
    Raises ``ValueError`` for anything else.
    """
    try:
        data = _read_structured(path)
    except yaml.YAMLError as exc:
        raise ValueError(f"{path.name}: YAMLError: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path.name}: JSONDecodeError: {exc}") from exc
    if isinstance(data, dict):
        data = data.get("clients")
    if not isinstance(data, list):
        raise ValueError(f"{path.name}: expected a list of clients")
    records = []
    for idx, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValueError(f"{path.name}: client #{idx + 1} is not a mapping")
        records.append(item)
    return records
