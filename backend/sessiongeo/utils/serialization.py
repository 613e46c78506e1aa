"""Serialization utilities for writing session and geometry documents."""
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import BaseModel


def serialize_model_to_dict(model: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    """
    Serialize a pydantic model to a JSON-compatible dictionary.

    Args:
        model: Pydantic model instance, or a dict that is returned as-is

    Returns:
        Dictionary representation of the model
    """
    if isinstance(model, BaseModel):
        return model.model_dump(mode="json")
    return model


def write_json_atomic(path: Union[str, Path], data: Any, indent: int = 2) -> Path:
    """
    Write a JSON document so readers never see a partial file.

    The document is written to a temporary file in the target directory and
    renamed over the destination once fully flushed.

    Args:
        path: Destination path
        data: Pydantic model or JSON-compatible value
        indent: Indentation passed to json.dump

    Returns:
        The destination path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = serialize_model_to_dict(data)

    fd, temp_path = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=indent, ensure_ascii=False)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise
    return path
