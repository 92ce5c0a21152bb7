"""JSON file helpers shared by the registry and the audit log."""
import json
import os
import tempfile
from pathlib import Path
from typing import Any


def read_json(path: Path, default: Any = None) -> Any:
    """
    Read a JSON document.

    An absent or empty file yields default. Raises OSError when the file
    cannot be read and ValueError when it is not valid JSON.
    """
    if not path.exists():
        return default
    data = path.read_text(encoding="utf-8")
    if not data.strip():
        return default
    return json.loads(data)


def write_json_atomic(path: Path, data: Any) -> None:
    """
    Write data to a temporary file beside path, then replace path with it.

    A crash mid-write leaves the previous file untouched. Raises OSError on
    failure; the temporary file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
