"""
tools/kv_store.py
Author: Yang
Description: Key-value persistence backends — ChromaDB for on-disk storage,
             a dict for tests and throwaway sessions.
             Contract: read(key) -> JSON value or None, write(key, value) -> bool.
             No business logic. Pure storage I/O; errors propagate to the caller.
"""

import copy
import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import chromadb

from config import CHROMA_COLLECTION, CHROMA_PATH, STORE_BACKEND

logger = logging.getLogger(__name__)

# Records are fetched by id only, never by similarity, so one fixed vector
# keeps ChromaDB from loading an embedding model.
_PLACEHOLDER_EMBEDDING = [0.0]


class InMemoryStore:
    """Process-local store. Values are copied in and out, like a real backend."""

    def __init__(self, initial: Optional[dict] = None):
        self._data: dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self.write(key, value)

    def read(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    def write(self, key: str, value: Any) -> bool:
        self._data[key] = json.loads(json.dumps(value))
        return True


class ChromaStore:
    """
    Each key is one ChromaDB document whose text is the JSON-encoded value.
    The client and collection are created on first use.
    """

    def __init__(self, path: str = CHROMA_PATH, collection: str = CHROMA_COLLECTION):
        self.path            = path
        self.collection_name = collection
        self._collection     = None

    def _get_collection(self):
        if self._collection is None:
            client = chromadb.PersistentClient(path=self.path)
            self._collection = client.get_or_create_collection(
                self.collection_name, embedding_function=None)
            logger.info("ChromaDB collection ready: %s @ %s",
                        self.collection_name, self.path)
        return self._collection

    def read(self, key: str) -> Any:
        result = self._get_collection().get(ids=[key], include=["documents"])
        docs = result.get("documents") or []
        if not docs or docs[0] is None:
            return None
        return json.loads(docs[0])

    def write(self, key: str, value: Any) -> bool:
        self._get_collection().upsert(
            ids=[key],
            documents=[json.dumps(value, ensure_ascii=False)],
            embeddings=[_PLACEHOLDER_EMBEDDING],
            metadatas=[{"updated_at": datetime.now(timezone.utc).isoformat()}],
        )
        logger.debug("ChromaDB upsert: %s", key)
        return True


def get_store(backend: str = STORE_BACKEND):
    """Build the backend named by *backend* (config.STORE_BACKEND by default)."""
    if backend == "chroma":
        return ChromaStore()
    if backend == "memory":
        return InMemoryStore()
    raise ValueError(f"Unknown store backend: {backend}")
