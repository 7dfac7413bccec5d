"""Document store accessor.

The policy layer only ever needs keyed reads plus one emptiness probe for the
bootstrap rule. :class:`DocumentStore` is that contract;
:class:`SqlDocumentStore` implements it over the ``documents`` table.
"""
import json
from datetime import datetime
from typing import Any, Dict, Optional, Protocol, Union

from sqlalchemy.orm import Session

from app.models.document import StoredDocument


class DocumentStore(Protocol):
    def get(self, collection: str, key: str) -> Optional[bytes]:
        ...

    def is_collection_empty(self, collection: str) -> bool:
        ...


class SqlDocumentStore:
    """SQLAlchemy-backed document store."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, collection: str, key: str) -> Optional[bytes]:
        doc = (
            self.db.query(StoredDocument)
            .filter(StoredDocument.collection == collection, StoredDocument.key == key)
            .first()
        )
        if doc is None:
            return None
        return bytes(doc.data)

    def is_collection_empty(self, collection: str) -> bool:
        first = (
            self.db.query(StoredDocument.id)
            .filter(StoredDocument.collection == collection)
            .limit(1)
            .first()
        )
        return first is None

    # Writes are owned by the storage layer; these exist for seeding and tests.

    def put(self, collection: str, key: str, data: Union[bytes, str, Dict[str, Any]]) -> None:
        if isinstance(data, dict):
            data = json.dumps(data)
        if isinstance(data, str):
            data = data.encode("utf-8")

        doc = (
            self.db.query(StoredDocument)
            .filter(StoredDocument.collection == collection, StoredDocument.key == key)
            .first()
        )
        if doc is None:
            self.db.add(StoredDocument(collection=collection, key=key, data=data))
        else:
            doc.data = data
            doc.updated_at = datetime.utcnow()
        self.db.commit()

    def remove(self, collection: str, key: str) -> bool:
        deleted = (
            self.db.query(StoredDocument)
            .filter(StoredDocument.collection == collection, StoredDocument.key == key)
            .delete()
        )
        self.db.commit()
        return deleted > 0
