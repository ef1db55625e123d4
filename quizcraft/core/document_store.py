"""
Document store for users, quizzes and attempts.

Documents are JSON objects with a string ``id``. Two backends share one
interface:

- ``RedisDocumentStore``: production backend. Each document is a JSON string
  under ``<prefix>:<collection>:<id>``; per-owner sorted sets (scored by
  insertion time) give ordered "find by owner"; unique fields get a plain
  lookup key.
- ``InMemoryDocumentStore``: development and test backend with identical
  semantics.

All backend failures surface as ``PersistenceError``.
"""

import json
import logging
import threading
import time
from typing import Any, Dict, List, Optional
from uuid import uuid4

from redis import ConnectionPool, Redis, RedisError

from quizcraft.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


class DocumentStore:
    """Interface implemented by every backend."""

    backend = "abstract"

    def insert(
        self,
        collection: str,
        document: Document,
        owner: Optional[str] = None,
        unique: Optional[Dict[str, str]] = None,
    ) -> Document:
        """
        Store a new document and return it with its assigned ``id``.

        Args:
            collection: Collection name ("users", "quizzes", "attempts")
            document: JSON-serialisable document (``id`` is generated if absent)
            owner: Owning user id, indexed for ``find_by_owner``
            unique: field -> value pairs that must be unique in the collection
        """
        raise NotImplementedError

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        raise NotImplementedError

    def find_by_owner(self, collection: str, owner: str, newest_first: bool = False) -> List[Document]:
        raise NotImplementedError

    def find_unique(self, collection: str, field: str, value: str) -> Optional[Document]:
        raise NotImplementedError

    def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy", "backend": self.backend}

    def close(self) -> None:
        pass

    @staticmethod
    def _with_id(document: Document) -> Document:
        stored = dict(document)
        stored.setdefault("id", uuid4().hex)
        return stored


class InMemoryDocumentStore(DocumentStore):
    """Thread-safe in-process store."""

    backend = "memory"

    def __init__(self):
        self._lock = threading.Lock()
        self._documents: Dict[str, Dict[str, str]] = {}
        self._owners: Dict[tuple, List[str]] = {}
        self._unique: Dict[tuple, str] = {}

    def insert(self, collection, document, owner=None, unique=None):
        stored = self._with_id(document)
        payload = json.dumps(stored)
        with self._lock:
            for field, value in (unique or {}).items():
                if (collection, field, value) in self._unique:
                    raise PersistenceError(
                        f"Duplicate value for {collection}.{field}", error="duplicate"
                    )
            self._documents.setdefault(collection, {})[stored["id"]] = payload
            if owner is not None:
                self._owners.setdefault((collection, owner), []).append(stored["id"])
            for field, value in (unique or {}).items():
                self._unique[(collection, field, value)] = stored["id"]
        return json.loads(payload)

    def get(self, collection, doc_id):
        with self._lock:
            payload = self._documents.get(collection, {}).get(doc_id)
        return json.loads(payload) if payload is not None else None

    def find_by_owner(self, collection, owner, newest_first=False):
        with self._lock:
            ids = list(self._owners.get((collection, owner), []))
            payloads = [self._documents[collection][doc_id] for doc_id in ids]
        if newest_first:
            payloads.reverse()
        return [json.loads(payload) for payload in payloads]

    def find_unique(self, collection, field, value):
        with self._lock:
            doc_id = self._unique.get((collection, field, value))
        return self.get(collection, doc_id) if doc_id else None


class RedisDocumentStore(DocumentStore):
    """Redis-backed document store with a pooled client."""

    backend = "redis"

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        prefix: str = "quizcraft",
        max_connections: int = 50,
        socket_timeout: int = 5,
        socket_connect_timeout: int = 5,
        password: Optional[str] = None,
        client: Optional[Redis] = None,
    ):
        self.prefix = prefix
        if client is not None:
            self.client = client
            return

        try:
            pool = ConnectionPool.from_url(
                redis_url,
                max_connections=max_connections,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_connect_timeout,
                password=password,
                decode_responses=True,
            )
            self.client = Redis(connection_pool=pool)
            self.client.ping()
            logger.info("Redis document store connected: %s", redis_url)
        except RedisError as e:
            logger.error("Failed to connect to Redis: %s", e)
            raise PersistenceError("Document store unavailable", error=str(e)) from e

    # Key layout -----------------------------------------------------------

    def _doc_key(self, collection: str, doc_id: str) -> str:
        return f"{self.prefix}:{collection}:{doc_id}"

    def _owner_key(self, collection: str, owner: str) -> str:
        return f"{self.prefix}:{collection}:owner:{owner}"

    def _unique_key(self, collection: str, field: str, value: str) -> str:
        return f"{self.prefix}:{collection}:unique:{field}:{value}"

    # Operations -------------------------------------------------------------

    def insert(self, collection, document, owner=None, unique=None):
        stored = self._with_id(document)
        # Claim unique values first so a concurrent duplicate loses cleanly.
        claimed: List[str] = []
        try:
            for field, value in (unique or {}).items():
                key = self._unique_key(collection, field, value)
                if not self.client.set(key, stored["id"], nx=True):
                    self._release(claimed)
                    raise PersistenceError(
                        f"Duplicate value for {collection}.{field}", error="duplicate"
                    )
                claimed.append(key)

            pipe = self.client.pipeline()
            pipe.set(self._doc_key(collection, stored["id"]), json.dumps(stored))
            if owner is not None:
                pipe.zadd(self._owner_key(collection, owner), {stored["id"]: time.time()})
            pipe.execute()
        except RedisError as e:
            logger.error("Redis insert error in %s: %s", collection, e)
            # A claim without its document would block the value forever
            self._release(claimed)
            raise PersistenceError(f"Failed to write {collection}", error=str(e)) from e
        return stored

    def _release(self, keys: List[str]) -> None:
        if not keys:
            return
        try:
            self.client.delete(*keys)
        except RedisError as e:
            logger.error("Failed to release unique keys %s: %s", keys, e)

    def get(self, collection, doc_id):
        try:
            payload = self.client.get(self._doc_key(collection, doc_id))
        except RedisError as e:
            logger.error("Redis get error for %s/%s: %s", collection, doc_id, e)
            raise PersistenceError(f"Failed to read {collection}", error=str(e)) from e
        return json.loads(payload) if payload else None

    def find_by_owner(self, collection, owner, newest_first=False):
        try:
            key = self._owner_key(collection, owner)
            ids = self.client.zrevrange(key, 0, -1) if newest_first else self.client.zrange(key, 0, -1)
            if not ids:
                return []
            payloads = self.client.mget([self._doc_key(collection, doc_id) for doc_id in ids])
        except RedisError as e:
            logger.error("Redis find error for %s owned by %s: %s", collection, owner, e)
            raise PersistenceError(f"Failed to read {collection}", error=str(e)) from e
        return [json.loads(payload) for payload in payloads if payload]

    def find_unique(self, collection, field, value):
        try:
            doc_id = self.client.get(self._unique_key(collection, field, value))
        except RedisError as e:
            logger.error("Redis lookup error for %s.%s: %s", collection, field, e)
            raise PersistenceError(f"Failed to read {collection}", error=str(e)) from e
        return self.get(collection, doc_id) if doc_id else None

    def health_check(self) -> Dict[str, Any]:
        try:
            self.client.ping()
            info = self.client.info("server")
            return {
                "status": "healthy",
                "backend": self.backend,
                "version": info.get("redis_version", "unknown"),
            }
        except RedisError as e:
            return {"status": "unhealthy", "backend": self.backend, "error": str(e)}

    def close(self) -> None:
        self.client.close()


def create_document_store(settings) -> DocumentStore:
    """Build the backend selected by settings."""
    if not settings.REDIS_ENABLED:
        logger.warning("REDIS_ENABLED is false: using in-memory document store")
        return InMemoryDocumentStore()

    return RedisDocumentStore(
        redis_url=settings.REDIS_URL,
        prefix=settings.REDIS_KEY_PREFIX,
        max_connections=settings.REDIS_MAX_CONNECTIONS,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.REDIS_SOCKET_CONNECT_TIMEOUT,
        password=settings.REDIS_PASSWORD,
    )
