"""MongoDB storage backend (document variant)."""

import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from bson import ObjectId
from pymongo import ASCENDING, MongoClient
from pymongo.client_session import ClientSession
from pymongo.collection import Collection
from pymongo.errors import BulkWriteError, ConnectionFailure, PyMongoError

from proverbs.core.exceptions import BackendConnectionError, QueryError, WriteError
from proverbs.core.models import Proverb

from .base import BaseBackend, BulkLoadScope

logger = logging.getLogger(__name__)


@dataclass
class StagedBatch:
    """Documents of a bulk load held client-side until commit."""

    id: ObjectId = field(default_factory=ObjectId)
    documents: list[dict[str, Any]] = field(default_factory=list)


class MongoBackend(BaseBackend):
    """MongoDB-based storage with one document per proverb.

    Bulk loads run inside a multi-document transaction when the deployment
    supports one (replica set or sharded cluster). On a standalone server
    the scope stages documents client-side, each stamped with the id of its
    batch. Commit writes them with one ordered ``insert_many`` and then
    publishes the batch by inserting its id into the ``<collection>_batches``
    collection. Queries only return documents without a batch stamp or whose
    batch is published, so a batch becomes visible with that single-document
    insert and a batch interrupted before it is never seen.
    """

    name = "mongodb"

    def __init__(
        self,
        uri: str = "mongodb://localhost:27017",
        database: str = "proverbs",
        collection: str = "proverbs",
        transactions: bool | None = None,
        timeout_ms: int = 5000,
        client: Any = None,
    ):
        super().__init__()
        self.uri = uri
        self.database_name = database
        self.collection_name = collection
        self.transactions = transactions
        self.timeout_ms = timeout_ms
        self._client = client
        self._owns_client = client is None
        self._collection: Collection | None = None
        self._batches: Collection | None = None
        self._use_transactions = bool(transactions)

    @property
    def location(self) -> str:
        return f"{self.uri}/{self.database_name}.{self.collection_name}"

    @property
    def collection(self) -> Collection:
        """Get the collection, ensuring the client is open."""
        if self._collection is None:
            raise BackendConnectionError(self.name, "client not open")
        return self._collection

    @property
    def uses_transactions(self) -> bool:
        """Check whether bulk loads run as server-side transactions."""
        return self._use_transactions

    @contextmanager
    def _errors(self, error_cls: type) -> Iterator[None]:
        """Translate driver errors into the store's error kinds."""
        try:
            yield
        except ConnectionFailure as e:
            raise BackendConnectionError(self.name, str(e)) from e
        except PyMongoError as e:
            raise error_cls(self.name, str(e)) from e

    def _open(self) -> None:
        try:
            if self._client is None:
                self._client = MongoClient(
                    self.uri, serverSelectionTimeoutMS=self.timeout_ms
                )
            # Forces server selection so an unreachable server fails here
            self._client.server_info()
            database = self._client[self.database_name]
            self._collection = database[self.collection_name]
            self._batches = database[f"{self.collection_name}_batches"]
            self._collection.create_index([("tags", ASCENDING)])
            self._collection.create_index([("batch", ASCENDING)])
            if self.transactions is None:
                self._use_transactions = self._supports_transactions()
        except (PyMongoError, ValueError) as e:
            self._release_client()
            raise BackendConnectionError(
                self.name, f"cannot connect to {self.uri}: {e}"
            ) from e
        logger.debug(
            f"MongoDB bulk loads use "
            f"{'transactions' if self._use_transactions else 'staged inserts'}"
        )

    def _supports_transactions(self) -> bool:
        hello = self._client.admin.command("hello")
        return "setName" in hello or hello.get("msg") == "isdbgrid"

    def _close(self) -> None:
        self._collection = None
        self._batches = None
        self._release_client()

    def _release_client(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def _begin(self) -> ClientSession | StagedBatch:
        if not self._use_transactions:
            return StagedBatch()
        with self._errors(WriteError):
            session = self._client.start_session()
            session.start_transaction()
            return session

    def _insert(self, scope: BulkLoadScope, proverb: Proverb) -> str:
        document = {"_id": ObjectId(), "text": proverb.text, "tags": list(proverb.tags)}
        if isinstance(scope.state, StagedBatch):
            document["batch"] = scope.state.id
            scope.state.documents.append(document)
        else:
            with self._errors(WriteError):
                self.collection.insert_one(document, session=scope.state)
        return str(document["_id"])

    def _commit(self, scope: BulkLoadScope) -> None:
        if isinstance(scope.state, StagedBatch):
            self._write_staged(scope.state)
            return
        session = scope.state
        try:
            with self._errors(WriteError):
                session.commit_transaction()
        finally:
            session.end_session()

    def _write_staged(self, batch: StagedBatch) -> None:
        if not batch.documents:
            return
        try:
            self.collection.insert_many(batch.documents, ordered=True)
        except BulkWriteError as e:
            self._remove_staged(batch)
            raise WriteError(self.name, str(e.details.get("writeErrors", e))) from e
        except ConnectionFailure as e:
            self._remove_staged(batch)
            raise BackendConnectionError(self.name, str(e)) from e
        except PyMongoError as e:
            self._remove_staged(batch)
            raise WriteError(self.name, str(e)) from e

        # The batch becomes visible with this single-document insert
        with self._errors(WriteError):
            self._batches.insert_one({"_id": batch.id, "count": len(batch.documents)})

    def _remove_staged(self, batch: StagedBatch) -> None:
        # Unpublished documents are already invisible; this only frees space
        try:
            self.collection.delete_many({"batch": batch.id})
        except PyMongoError as e:
            logger.warning(f"Could not remove unpublished batch {batch.id}: {e}")

    def _abort(self, scope: BulkLoadScope) -> None:
        if isinstance(scope.state, StagedBatch):
            scope.state.documents.clear()
            return
        session = scope.state
        try:
            if session.in_transaction:
                with self._errors(WriteError):
                    session.abort_transaction()
        finally:
            session.end_session()

    def _visible(self, query: dict[str, Any]) -> dict[str, Any]:
        """Restrict a query to documents outside any unpublished batch."""
        published = self._batches.distinct("_id")
        return {
            "$and": [
                query,
                {"$or": [{"batch": {"$exists": False}}, {"batch": {"$in": published}}]},
            ]
        }

    def _find(self, query: dict[str, Any]) -> list[Proverb]:
        with self._errors(QueryError):
            cursor = self.collection.find(self._visible(query))
            documents = list(cursor.sort("_id", ASCENDING))
        return [
            Proverb(
                id=str(document["_id"]),
                text=document["text"],
                tags=tuple(document.get("tags", ())),
            )
            for document in documents
        ]

    def _list_all(self) -> list[Proverb]:
        return self._find({})

    def _find_contains(self, substring: str) -> list[Proverb]:
        return self._find({"text": {"$regex": re.escape(substring), "$options": "i"}})

    def _find_by_tag(self, tag: str) -> list[Proverb]:
        # Equality against an array field matches any element
        return self._find({"tags": tag})

    def count(self) -> int:
        """Count stored proverbs on the server."""
        self._require_open()
        with self._errors(QueryError):
            return self.collection.count_documents(self._visible({}))
