"""Persistence utilities for the daily budget ledger."""

from __future__ import annotations

import csv
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .exceptions import PersistenceError
from .logging_setup import get_logger

logger = get_logger(__name__)

ARCHIVE_DIR = "archive"


class JSONStorage:
    """Simple file-based JSON storage with crash-safe writes."""

    def __init__(self, base_path: Path) -> None:
        self._base_path = Path(base_path)
        try:
            self._base_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Unable to create data directory {self._base_path}") from exc

    def exists(self, resource: str) -> bool:
        return (self._base_path / resource).exists()

    def load(self, resource: str) -> List[Any]:
        path = self._base_path / resource
        if not path.exists():
            return []
        payload = self._read(path)
        if not isinstance(payload, list):
            raise PersistenceError(f"Expected list payload in {path}")
        return payload

    def load_object(self, resource: str) -> Optional[Dict[str, Any]]:
        path = self._base_path / resource
        if not path.exists():
            return None
        payload = self._read(path)
        if not isinstance(payload, dict):
            raise PersistenceError(f"Expected object payload in {path}")
        return payload

    def save(self, resource: str, records: Any) -> None:
        path = self._base_path / resource
        temp_path = path.with_suffix(path.suffix + ".tmp")
        if not isinstance(records, dict):
            records = list(records)
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                json.dump(records, handle, indent=2)
                handle.flush()
            # Use replace for atomic move on POSIX.
            temp_path.replace(path)
        except OSError as exc:
            raise PersistenceError(f"Unable to write to {temp_path}") from exc

    def write_csv(self, name: str, headers: Sequence[str], rows: Iterable[Dict[str, Any]]) -> Path:
        path = self._base_path / name
        try:
            with path.open("w", newline="", encoding="utf-8") as handle:
                writer = csv.DictWriter(handle, fieldnames=list(headers))
                writer.writeheader()
                for row in rows:
                    writer.writerow(row)
        except OSError as exc:
            raise PersistenceError(f"Unable to write to {path}") from exc
        return path

    def archive(self, resources: Iterable[str], *, now: Optional[datetime] = None) -> Path:
        """Move the given resources into ``archive/<UTC timestamp>/``."""
        stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%SZ")
        target = self._base_path / ARCHIVE_DIR / stamp
        suffix = 1
        while target.exists():
            suffix += 1
            target = self._base_path / ARCHIVE_DIR / f"{stamp}-{suffix}"
        try:
            target.mkdir(parents=True)
            for resource in resources:
                source = self._base_path / resource
                if source.exists():
                    source.replace(target / resource)
        except OSError as exc:
            raise PersistenceError(f"Unable to archive into {target}") from exc
        logger.info("Archived ledger files into %s", target)
        return target

    def _read(self, path: Path) -> Any:
        try:
            with path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Corrupted JSON data in {path}") from exc
        except OSError as exc:
            raise PersistenceError(f"Unable to read from {path}") from exc

    @property
    def base_path(self) -> Path:
        return self._base_path
