"""Database models"""
from app.models.audit_log import AdminAuditLog
from app.models.document import StoredDocument

__all__ = ["AdminAuditLog", "StoredDocument"]
