from __future__ import annotations

import copy
import threading
from typing import Any, Dict, List, Protocol

from resultbook.config.settings import Settings


class StoreError(Exception):
    pass


class ResultStore(Protocol):
    """Component documents keyed by camelCase fields; no multi-call transactions."""

    def find(self, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        ...

    def delete_many(self, filters: Dict[str, Any]) -> int:
        ...

    def insert_many(self, documents: List[Dict[str, Any]]) -> None:
        ...


def _matches(document: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    return all(document.get(name) == value for name, value in filters.items())


class InMemoryResultStore:
    """Process-local store, used by default and in tests."""

    def __init__(self) -> None:
        self._documents: List[Dict[str, Any]] = []
        self._lock = threading.Lock()
        self._next_id = 1

    def find(self, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(doc) for doc in self._documents if _matches(doc, filters)]

    def delete_many(self, filters: Dict[str, Any]) -> int:
        with self._lock:
            kept = [doc for doc in self._documents if not _matches(doc, filters)]
            deleted = len(self._documents) - len(kept)
            self._documents = kept
            return deleted

    def insert_many(self, documents: List[Dict[str, Any]]) -> None:
        with self._lock:
            for document in documents:
                stored = copy.deepcopy(document)
                stored.setdefault("$id", f"mem_{self._next_id}")
                self._next_id += 1
                self._documents.append(stored)

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)


def create_store(config: Settings) -> ResultStore:
    backend = config.store_backend
    if backend == "memory":
        return InMemoryResultStore()
    if backend == "appwrite":
        from resultbook.services.appwrite_service import AppwriteResultStore

        return AppwriteResultStore.from_settings(config)
    if backend == "firestore":
        from resultbook.services.firestore_service import FirestoreResultStore

        return FirestoreResultStore.from_settings(config)
    raise StoreError(f"Unsupported store backend: {backend}")


def create_directory(config: Settings):
    """Name directory matching the configured store; None for the in-memory backend."""
    if config.store_backend == "appwrite":
        from resultbook.services.appwrite_service import AppwriteDirectory

        return AppwriteDirectory.from_settings(config)
    if config.store_backend == "firestore":
        from resultbook.services.firestore_service import FirestoreDirectory

        return FirestoreDirectory.from_settings(config)
    return None
