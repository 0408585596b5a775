"""
JSON file storage for scan output.
"""

import gzip
import json
import logging
import os
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from .base import DataError

logger = logging.getLogger(__name__)


class JsonStorage:
    """
    JSON file storage for pool lists.

    Features:
    - Save/load JSON files
    - Compression support
    - Atomic writes
    """

    def __init__(self, base_path: Union[str, Path], compress: bool = False, pretty: bool = True):
        """
        Initialize JSON storage.

        Args:
            base_path: Directory the files are written to
            compress: Whether to gzip files
            pretty: Whether to pretty-print JSON
        """
        self.base_path = Path(base_path)
        self.compress = compress
        self.pretty = pretty

    def _get_full_path(self, filename: str) -> Path:
        if not filename.endswith(".json") and not filename.endswith(".json.gz"):
            filename = f"{filename}.json"

        if self.compress and not filename.endswith(".gz"):
            filename = f"{filename}.gz"

        return self.base_path / filename

    def save(self, filename: str, data: Any) -> Path:
        """
        Save data to a JSON file.

        The file is written next to its destination and renamed into place,
        so readers never see a half-written file.

        Args:
            filename: File name (relative to base_path)
            data: JSON-serializable data

        Returns:
            Path of the written file

        Raises:
            DataError: If the file cannot be written
        """
        filepath = self._get_full_path(filename)
        temp_path = filepath.with_name(f"{filepath.name}.tmp")
        indent = 2 if self.pretty else None

        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            if self.compress:
                with gzip.open(temp_path, "wt", encoding="utf-8") as f:
                    json.dump(data, f, indent=indent, default=str)
            else:
                with open(temp_path, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=indent, default=str)
            os.replace(temp_path, filepath)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save JSON file {filename}: {e}")
            if temp_path.exists():
                temp_path.unlink()
            raise DataError(f"JSON save failed: {e}") from e

        logger.info(f"Saved data to {filepath}")
        return filepath

    def load(self, filename: str) -> Optional[Any]:
        """
        Load data from a JSON file.

        Returns:
            Loaded data or None if the file doesn't exist

        Raises:
            DataError: If the file exists but cannot be parsed
        """
        filepath = self._get_full_path(filename)
        if not filepath.exists():
            return None

        try:
            if filepath.suffix == ".gz":
                with gzip.open(filepath, "rt", encoding="utf-8") as f:
                    return json.load(f)
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise DataError(f"JSON load failed for {filepath}: {e}") from e

    def save_records(self, filename: str, records: Iterable[Any]) -> Path:
        """Save pool records as a JSON array, using each record's to_dict()."""
        payload: List[Any] = [r.to_dict() if hasattr(r, "to_dict") else r for r in records]
        return self.save(filename, payload)
