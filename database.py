"""
Key-value store adapter

Each slice of storefront state is kept as one JSON document under a
named key. Reads never raise: an absent key, unparsable text, a document
that fails validation, or a backend error all fall back to the default
the caller supplies. Writes are best effort; failures are logged and the
in-memory state stays authoritative.

Backends:
- FileBackend: one <key>.json file per key (default)
- MongoBackend: "kv" collection, used when DATABASE_URL/DATABASE_NAME are set
- MemoryBackend: process-local dict
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import TypeAdapter
from pymongo import MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

SESSION_KEY = "session"
CART_KEY = "cart"
ORDERS_KEY = "orders"
PRODUCTS_KEY = "products"


class MemoryBackend:
    name = "memory"

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, raw: str) -> None:
        self.data[key] = raw


class FileBackend:
    name = "file"

    def __init__(self, directory):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, raw: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(raw, encoding="utf-8")
        tmp.replace(path)


class MongoBackend:
    name = "mongo"

    def __init__(self, db, collection: str = "kv"):
        self.collection = db[collection]

    def get(self, key: str) -> Optional[str]:
        doc = self.collection.find_one({"_id": key})
        if not doc:
            return None
        return doc.get("value")

    def set(self, key: str, raw: str) -> None:
        self.collection.replace_one({"_id": key}, {"_id": key, "value": raw}, upsert=True)


class Store:
    """JSON documents by key over a backend."""

    def __init__(self, backend):
        self.backend = backend

    def load(self, key: str, default: Any, schema: Any = None) -> Any:
        try:
            raw = self.backend.get(key)
        except (OSError, UnicodeDecodeError, PyMongoError) as e:
            logger.warning("Could not read %r from %s store: %s", key, self.backend.name, e)
            return default
        if raw is None:
            return default
        try:
            data = json.loads(raw)
            if schema is not None:
                data = TypeAdapter(schema).validate_python(data)
        except (TypeError, ValueError, RecursionError) as e:
            # non-text values, bad JSON, validation failures, runaway nesting
            logger.warning("Discarding unreadable %r document: %s", key, str(e)[:200])
            return default
        return data

    def save(self, key: str, value: Any) -> bool:
        try:
            raw = TypeAdapter(Any).dump_json(value).decode("utf-8")
            self.backend.set(key, raw)
        except (OSError, PyMongoError, TypeError, ValueError) as e:
            logger.error("Could not write %r to %s store: %s", key, self.backend.name, e)
            return False
        return True


def build_store() -> Store:
    """Pick a backend from the environment."""
    kind = os.getenv("STORE_BACKEND", "").lower()
    database_url = os.getenv("DATABASE_URL")
    database_name = os.getenv("DATABASE_NAME")

    if kind == "memory":
        return Store(MemoryBackend())
    if kind == "mongo" or (not kind and database_url and database_name):
        if not (database_url and database_name):
            raise RuntimeError("STORE_BACKEND=mongo needs DATABASE_URL and DATABASE_NAME")
        client = MongoClient(database_url)
        return Store(MongoBackend(client[database_name]))
    return Store(FileBackend(os.getenv("STORE_DIR", ".storefront")))
