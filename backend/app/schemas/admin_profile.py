"""Admin directory schemas"""
from typing import Optional

from pydantic import BaseModel, Field

from app.policy.bulk import BulkOperation
from app.policy.roles import Role


class AdminProfileResponse(BaseModel):
    """Schema for an admin profile as stored in the directory"""

    user_id: str
    display_name: str
    role: Role
    approval_limit: float
    is_active: bool


class BulkCheckRequest(BaseModel):
    """Schema for a bulk-operation pre-check"""

    caller: str = Field(..., description="Principal that wants to run the bulk operation")
    operation: str = Field(
        ...,
        description=f"Bulk operation ({', '.join(op.value for op in BulkOperation)})",
    )
    target_count: int = Field(..., description="Number of records the operation touches")


class BulkCheckResponse(BaseModel):
    """Schema for a bulk-operation decision"""

    allowed: bool
    operation: str
    target_count: int
    limit: Optional[int] = Field(None, description="Ceiling for the operation")
    reason: Optional[str] = None
