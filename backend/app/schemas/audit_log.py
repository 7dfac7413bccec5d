"""Audit log schemas"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator

from app.policy.audit import AuditAction


class AuditLogCreate(BaseModel):
    """Schema for recording an admin action"""

    admin_id: str = Field(..., min_length=1, description="Principal that performed the action")
    action: AuditAction = Field(..., description="Action performed")
    target_collection: str = Field(..., min_length=1, description="Collection of the affected record")
    target_id: str = Field(..., min_length=1, description="Key of the affected record")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Structured payload stored with the entry")


class AuditLogResponse(BaseModel):
    """Schema for audit log response"""

    log_id: str
    admin_id: str
    action: str
    target_collection: str
    target_id: str
    timestamp: datetime
    metadata: Optional[Dict[str, Any]] = None
    previous_hash: str = ""

    class Config:
        from_attributes = True

    @model_validator(mode='before')
    @classmethod
    def map_log_metadata(cls, data):
        """Map log_metadata attribute to metadata field"""
        # Handle SQLAlchemy model objects
        if hasattr(data, '__dict__') and hasattr(data, 'log_metadata'):
            return {
                'log_id': data.log_id,
                'admin_id': data.admin_id,
                'action': data.action,
                'target_collection': data.target_collection,
                'target_id': data.target_id,
                'timestamp': data.timestamp,
                'metadata': data.log_metadata,
                'previous_hash': data.previous_hash or '',
            }
        return data


class ChainVerifyResponse(BaseModel):
    """Response from GET /audit/verify - reports integrity of the admin audit chain"""

    valid: bool = Field(..., description="True if the entire chain is intact")
    total_entries: int = Field(..., description="Total number of log entries checked")
    broken_at: Optional[str] = Field(
        None,
        description="log_id of the first entry whose hash does not match - null when valid=true",
    )
