"""Atomic file I/O operations."""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)


def atomic_write_text(file_path: Path, content: str, max_retries: int = 3) -> None:
    """
    Atomically write content to a file using temp file + rename.

    The target is either fully written or left untouched, so a crashed
    CLI run never leaves a truncated feature list behind.

    Args:
        file_path: Target file path
        content: Content to write
        max_retries: Maximum number of retry attempts on failure

    Raises:
        OSError: If write fails after all retries
    """
    file_path.parent.mkdir(parents=True, exist_ok=True)
    # PID suffix keeps concurrent CLI processes from sharing a temp file
    tmp_file = file_path.with_suffix(f"{file_path.suffix}.tmp.{os.getpid()}")

    last_error = None
    for attempt in range(max_retries):
        try:
            tmp_file.write_text(content, encoding="utf-8")
            tmp_file.replace(file_path)
            return
        except OSError as e:
            last_error = e
            if attempt < max_retries - 1:
                logger.warning(
                    f"Failed to write {file_path} (attempt {attempt + 1}/{max_retries}): {e}"
                )
        finally:
            if tmp_file.exists():
                try:
                    tmp_file.unlink()
                except OSError:
                    pass

    logger.error(f"Failed to write {file_path} after {max_retries} attempts: {last_error}")
    raise last_error


def atomic_write_json(file_path: Path, data: Any, indent: int = 2) -> None:
    """Serialize data as JSON and write it atomically."""
    atomic_write_text(file_path, json.dumps(data, indent=indent) + "\n")


def atomic_write_model(file_path: Path, model: BaseModel, indent: int = 2) -> None:
    """
    Atomically write a Pydantic model to a JSON file.

    Field aliases are used so on-disk keys keep their camelCase form.
    """
    atomic_write_text(
        file_path,
        model.model_dump_json(indent=indent, by_alias=True, exclude_none=True) + "\n",
    )
