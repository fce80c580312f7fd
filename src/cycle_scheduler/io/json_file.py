"""
Small helpers shared by the JSON-backed stores.

Writes go to a temporary file in the same directory and are moved into
place with ``os.replace``, so a failed write leaves the previous file intact.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from ..core.errors import ValidationError


def read_json_list(path: Path) -> list[dict[str, Any]]:
    """
    Read a JSON file holding a list of records.

    Returns:
        The records, or an empty list if the file does not exist or is empty

    Raises:
        ValidationError: If the file is not valid JSON or not a list
    """
    if not path.exists():
        return []
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Error parsing {path}: {e}") from e
    if not isinstance(data, list):
        raise ValidationError(f"Expected a JSON list in {path}")
    return data


def write_json_atomic(path: Path, data: Any) -> None:
    """
    Write ``data`` as indented JSON, replacing ``path`` in one step.

    Raises:
        OSError: If the directory is not writable or the disk is full
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
