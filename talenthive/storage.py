"""JSON-file document store.

Each collection lives in ``<data_dir>/<collection>.json`` as a list of
serialized records. Read-modify-write cycles should hold ``store.lock``.
"""

import json
import os
import threading
from pathlib import Path
from typing import Optional


class JsonStore:
    """Loads and saves model collections as JSON files."""

    _locks: dict[str, threading.RLock] = {}
    _locks_guard = threading.Lock()

    def __init__(self, data_dir: Path):
        """Initialize the store with a data directory."""
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        key = str(self.data_dir.resolve())
        with JsonStore._locks_guard:
            self.lock = JsonStore._locks.setdefault(key, threading.RLock())

    def _path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    def load_raw(self, collection: str) -> list[dict]:
        """Load a collection as plain dictionaries."""
        path = self._path(collection)
        if not path.exists():
            return []
        with open(path, "r") as f:
            return json.load(f)

    def save_raw(self, collection: str, records: list[dict]) -> None:
        """Replace a collection with plain dictionaries."""
        path = self._path(collection)
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w") as f:
            json.dump(records, f, indent=2)
        os.replace(tmp_path, path)

    def load(self, collection: str, model) -> list:
        """Load all records of a collection as model instances."""
        return [model.from_dict(r) for r in self.load_raw(collection)]

    def save(self, collection: str, items: list) -> None:
        """Save model instances, replacing the collection."""
        self.save_raw(collection, [item.to_dict() for item in items])

    def get(self, collection: str, model, item_id: str) -> Optional[object]:
        """Get a single record by ID."""
        for record in self.load_raw(collection):
            if record.get("id") == item_id:
                return model.from_dict(record)
        return None

    def find(self, collection: str, model, **criteria) -> list:
        """Return records whose fields equal all given criteria."""
        return [
            item for item in self.load(collection, model)
            if all(getattr(item, k) == v for k, v in criteria.items())
        ]

    def insert(self, collection: str, item) -> None:
        """Append a record."""
        with self.lock:
            records = self.load_raw(collection)
            records.append(item.to_dict())
            self.save_raw(collection, records)

    def update(self, collection: str, item) -> None:
        """Replace the record with the same ID, or append it."""
        with self.lock:
            records = self.load_raw(collection)
            for i, record in enumerate(records):
                if record.get("id") == item.id:
                    records[i] = item.to_dict()
                    break
            else:
                records.append(item.to_dict())
            self.save_raw(collection, records)

    def delete(self, collection: str, item_id: str) -> bool:
        """Delete a record by ID. Returns False if it did not exist."""
        with self.lock:
            records = self.load_raw(collection)
            remaining = [r for r in records if r.get("id") != item_id]
            if len(remaining) == len(records):
                return False
            self.save_raw(collection, remaining)
            return True

    def count(self, collection: str) -> int:
        return len(self.load_raw(collection))
