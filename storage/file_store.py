"""File-based storage utilities for persisting bot data.

Provides FileStore classes for reading and writing YAML and JSON documents
with atomic write operations.
"""
import json
import logging
import os
from typing import Any, Dict, TextIO

import yaml

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A stored document could not be encoded or decoded."""


class FileStore:
    """Handles reading and writing one structured document with atomic writes.

    Subclasses provide ``_load`` and ``_dump`` for their format.

    Attributes:
        path: Path to the document
    """
    def __init__(self, path: str) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if the file exists."""
        return os.path.exists(self.path)

    def read(self) -> Dict[str, Any]:
        """Read and parse the file.

        Returns:
            Parsed data as dictionary

        Raises:
            FileNotFoundError: The file does not exist
            StoreError: The content is not a valid document
        """
        with open(self.path, "r", encoding="utf-8") as f:
            try:
                data = self._load(f)
            except ValueError as e:
                raise StoreError(f"Failed to decode {self.path}: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise StoreError(f"Expected a mapping in {self.path}, got {type(data).__name__}")
        return data

    def write(self, data: Dict[str, Any]) -> None:
        """Write data to the file atomically.

        Uses a temporary file and atomic rename to prevent corruption. On
        failure the previous content is left untouched.

        Args:
            data: Dictionary to write

        Raises:
            OSError: The file could not be written
            StoreError: The data could not be encoded
        """
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = self.path + ".tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                try:
                    self._dump(data, f)
                except (TypeError, ValueError) as e:
                    raise StoreError(f"Failed to encode {self.path}: {e}") from e
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        logger.debug("Wrote %s", self.path)

    def _load(self, f: TextIO) -> Any:
        raise NotImplementedError

    def _dump(self, data: Dict[str, Any], f: TextIO) -> None:
        raise NotImplementedError


class YAMLFileStore(FileStore):
    """Handles reading and writing YAML files with atomic operations."""

    def _load(self, f: TextIO) -> Any:
        try:
            return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(str(e)) from e

    def _dump(self, data: Dict[str, Any], f: TextIO) -> None:
        try:
            yaml.safe_dump(data, f, sort_keys=False)
        except yaml.YAMLError as e:
            raise ValueError(str(e)) from e


class JSONFileStore(FileStore):
    """Handles reading and writing JSON files with atomic operations."""

    def _load(self, f: TextIO) -> Any:
        return json.load(f)

    def _dump(self, data: Dict[str, Any], f: TextIO) -> None:
        json.dump(data, f, indent=2)
