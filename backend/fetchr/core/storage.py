import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel

from fetchr.config import settings
from fetchr.core.errors import RecordNotFoundError
from fetchr.models import (
    HistoryEntry,
    LinkedCollection,
    StoredCollection,
    StoredEnvironment,
    StoredRequest,
    utc_now,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class StorageEngine:
    """
    JSON-file record store. One file per record kind under the workspace dir;
    every write replaces the whole file atomically. Nothing touches disk until
    the first write.
    """

    def __init__(self, workspace_dir: str | None = None, history_limit: int | None = None):
        self.base_dir = Path(workspace_dir or settings.workspace_dir)
        self.history_limit = history_limit or settings.history_limit
        self._lock = threading.RLock()

    # --- File helpers ---
    def _path(self, kind: str) -> Path:
        return self.base_dir / f"{kind}.json"

    def _atomic_write(self, target_path: Path, data: Any):
        target_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = target_path.with_suffix(".tmp")
        payload = json.dumps(data, indent=2)
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, target_path)

    def _read(self, kind: str, model: Type[M]) -> List[M]:
        path = self._path(kind)
        if not path.exists():
            return []
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return [model(**item) for item in raw]

    def _write(self, kind: str, records: List[BaseModel]):
        self._atomic_write(self._path(kind), [r.model_dump() for r in records])

    # --- Collections & folders ---
    def list_collections(self) -> List[StoredCollection]:
        return self._read("collections", StoredCollection)

    def get_collection(self, collection_id: str) -> StoredCollection:
        for c in self.list_collections():
            if c.id == collection_id:
                return c
        raise RecordNotFoundError(f"Collection not found: {collection_id}")

    def create_collection(self, collection: StoredCollection) -> StoredCollection:
        with self._lock:
            collections = self.list_collections()
            collections.append(collection)
            self._write("collections", collections)
        return collection

    def delete_collection(self, collection_id: str):
        """Removes the collection, its descendant folders and all their requests."""
        with self._lock:
            collections = self.list_collections()
            doomed = {collection_id}
            grew = True
            while grew:
                grew = False
                for c in collections:
                    if c.parent_id in doomed and c.id not in doomed:
                        doomed.add(c.id)
                        grew = True
            self._write("collections", [c for c in collections if c.id not in doomed])
            requests = self._read("requests", StoredRequest)
            self._write("requests", [r for r in requests if r.collection_id not in doomed])
        logger.debug("Deleted %d collection records", len(doomed))

    # --- Requests ---
    def list_requests(self, collection_id: str) -> List[StoredRequest]:
        return [r for r in self._read("requests", StoredRequest) if r.collection_id == collection_id]

    def get_request(self, request_id: str) -> Optional[StoredRequest]:
        for r in self._read("requests", StoredRequest):
            if r.id == request_id:
                return r
        return None

    def save_request(self, request: StoredRequest) -> StoredRequest:
        """Insert or replace by id."""
        with self._lock:
            requests = self._read("requests", StoredRequest)
            request = request.model_copy(update={"updated_at": utc_now()})
            for idx, existing in enumerate(requests):
                if existing.id == request.id:
                    requests[idx] = request
                    break
            else:
                requests.append(request)
            self._write("requests", requests)
        return request

    def delete_request(self, request_id: str):
        with self._lock:
            requests = self._read("requests", StoredRequest)
            self._write("requests", [r for r in requests if r.id != request_id])

    # --- Environments ---
    def list_environments(self) -> List[StoredEnvironment]:
        return self._read("environments", StoredEnvironment)

    def get_active_environment(self) -> Optional[StoredEnvironment]:
        for env in self.list_environments():
            if env.is_active:
                return env
        return None

    def save_environment(self, env: StoredEnvironment) -> StoredEnvironment:
        """Insert or replace by id; at most one environment stays active."""
        with self._lock:
            envs = self.list_environments()
            if env.is_active:
                for other in envs:
                    other.is_active = False
            for idx, existing in enumerate(envs):
                if existing.id == env.id:
                    envs[idx] = env
                    break
            else:
                envs.append(env)
            self._write("environments", envs)
        return env

    def delete_environment(self, env_id: str):
        with self._lock:
            envs = self.list_environments()
            self._write("environments", [e for e in envs if e.id != env_id])

    # --- History ---
    def add_history(self, entry: HistoryEntry):
        with self._lock:
            history = self._read("history", HistoryEntry)
            history.insert(0, entry)
            self._write("history", history[: self.history_limit])

    def get_history(self, limit: int = 50) -> List[HistoryEntry]:
        return self._read("history", HistoryEntry)[:limit]

    def clear_history(self):
        with self._lock:
            self._write("history", [])

    # --- Import ---
    def save_linked(self, linked: LinkedCollection) -> str:
        """Persist an imported collection; folders are created parent-first."""
        with self._lock:
            collections = self.list_collections()
            collections.append(linked.root)
            collections.extend(linked.folders)
            self._write("collections", collections)
            requests = self._read("requests", StoredRequest)
            requests.extend(linked.requests)
            self._write("requests", requests)
        logger.info(
            "Stored collection %r (%d folders, %d requests)",
            linked.root.name, len(linked.folders), len(linked.requests),
        )
        return linked.root.id


storage = StorageEngine()


def get_storage() -> StorageEngine:
    return storage
