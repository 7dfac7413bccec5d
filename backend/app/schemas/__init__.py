"""Pydantic schemas for request/response validation"""
from app.schemas.admin_profile import AdminProfileResponse, BulkCheckRequest, BulkCheckResponse
from app.schemas.audit_log import AuditLogCreate, AuditLogResponse, ChainVerifyResponse
from app.schemas.evaluate import DecisionResponse, EvaluateDeleteRequest, EvaluateWriteRequest

__all__ = [
    "AdminProfileResponse",
    "BulkCheckRequest",
    "BulkCheckResponse",
    "AuditLogCreate",
    "AuditLogResponse",
    "ChainVerifyResponse",
    "DecisionResponse",
    "EvaluateDeleteRequest",
    "EvaluateWriteRequest",
]
