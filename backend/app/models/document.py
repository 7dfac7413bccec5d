"""StoredDocument model - the key-value document store read by the admin directory"""
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, LargeBinary, String, UniqueConstraint

from app.database import Base


class StoredDocument(Base):
    """One document of a collection, keyed by ``(collection, key)``.

    ``data`` holds the raw JSON bytes exactly as the storage layer wrote them;
    parsing happens in the policy layer so malformed records surface as
    denials instead of ORM errors.
    """

    __tablename__ = "documents"
    __table_args__ = (UniqueConstraint("collection", "key", name="uq_documents_collection_key"),)

    id = Column(Integer, primary_key=True, index=True)
    collection = Column(String(100), nullable=False, index=True)
    key = Column(String(255), nullable=False, index=True)
    data = Column(LargeBinary, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
