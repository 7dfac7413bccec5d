"""Admin audit log model"""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, JSON, String

from app.database import Base


def generate_uuid_string():
    """Generate UUID as string for SQLite compatibility"""
    return str(uuid.uuid4())


class AdminAuditLog(Base):
    """AdminAuditLog model - append-only record of accepted sensitive admin operations"""

    __tablename__ = "admin_audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    log_id = Column(String(36), default=generate_uuid_string, unique=True, nullable=False, index=True)
    admin_id = Column(String(255), nullable=False, index=True)
    action = Column(String(64), nullable=False, index=True)
    target_collection = Column(String(100), nullable=False)
    target_id = Column(String(255), nullable=False, index=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    log_metadata = Column("metadata", JSON, nullable=True)  # Column name is 'metadata', attribute is 'log_metadata'
    previous_hash = Column(String(64), nullable=False)
