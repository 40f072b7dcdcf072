"""
JSON record store

One JSON file per collection under DATA_PATH, each holding an array of
records. Reads load the whole array, writes replace the whole file. There is
no locking: two concurrent read-modify-write cycles on the same collection
race and the last save wins.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

logger = logging.getLogger(__name__)

COLLECTIONS = ("users", "products", "gallery", "orders", "members", "travel-posts")
FILE_MODE = 0o644


class StoreError(Exception):
    """A collection file could not be read, parsed or written."""


class RecordStore:
    def __init__(self, root: Optional[Union[str, Path]] = None):
        self._root = Path(root) if root is not None else None

    @property
    def root(self) -> Path:
        if self._root is not None:
            return self._root
        return Path(os.getenv("DATA_PATH", "data"))

    def path(self, collection: str) -> Path:
        return self.root / f"{collection}.json"

    def init(self) -> None:
        """Create the data directory and an empty array for missing collections."""
        self.root.mkdir(parents=True, exist_ok=True)
        for name in COLLECTIONS:
            p = self.path(name)
            if not p.exists():
                p.write_text("[]", encoding="utf-8")
                logger.info("Created empty collection %s", p)

    def load(self, collection: str) -> List[Dict[str, Any]]:
        p = self.path(collection)
        try:
            with p.open("r", encoding="utf-8") as fh:
                docs = json.load(fh)
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot read collection '{collection}': {e}") from e
        if not isinstance(docs, list):
            raise StoreError(f"Collection '{collection}' is not a JSON array")
        return docs

    def save(self, collection: str, docs: List[Dict[str, Any]]) -> None:
        p = self.path(collection)
        try:
            fd, tmp = tempfile.mkstemp(dir=str(p.parent), prefix=f".{collection}-", suffix=".tmp")
        except OSError as e:
            raise StoreError(f"Cannot write collection '{collection}': {e}") from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(docs, fh, indent=2, ensure_ascii=False)
            # mkstemp creates 0600; keep the mode of the file being replaced
            mode = p.stat().st_mode & 0o777 if p.exists() else FILE_MODE
            os.chmod(tmp, mode)
            os.replace(tmp, p)
        except (OSError, TypeError, ValueError) as e:
            os.unlink(tmp)
            raise StoreError(f"Cannot write collection '{collection}': {e}") from e


db = RecordStore()


def get_documents(collection: str) -> List[Dict[str, Any]]:
    return db.load(collection)


def save_documents(collection: str, docs: List[Dict[str, Any]]) -> None:
    db.save(collection, docs)


def create_document(collection: str, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    """Append one record to a collection and return it as stored."""
    if isinstance(data, BaseModel):
        doc = data.model_dump(by_alias=True)
    else:
        doc = dict(data)
    docs = db.load(collection)
    docs.append(doc)
    db.save(collection, docs)
    return doc


def find_index(docs: List[Dict[str, Any]], value: Any, key: str = "id") -> int:
    """Index of the first record whose `key` equals `value`, or -1."""
    for i, doc in enumerate(docs):
        if doc.get(key) == value:
            return i
    return -1
