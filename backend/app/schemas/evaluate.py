"""Policy evaluation schemas"""
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

from app.policy.errors import ErrorKind

# Documents travel as raw JSON text (what the storage layer hands over) or
# as an already decoded JSON object.
DocumentBody = Union[str, Dict[str, Any]]


class EvaluateWriteRequest(BaseModel):
    """Schema for a proposed write"""

    collection: str = Field(..., description="Target collection (e.g. 'business_applications')")
    key: str = Field(..., description="Target document key")
    proposed: DocumentBody = Field(..., description="Proposed document")
    current: Optional[DocumentBody] = Field(None, description="Currently stored document, if any")
    caller: str = Field(..., description="Authenticated principal asserted by the hosting environment")
    now_ns: Optional[int] = Field(
        None,
        ge=0,
        description="Evaluation time in nanoseconds since the Unix epoch (defaults to server time)",
    )


class EvaluateDeleteRequest(BaseModel):
    """Schema for a proposed delete"""

    collection: str = Field(..., description="Target collection")
    key: str = Field(..., description="Target document key")
    caller: str = Field(..., description="Authenticated principal asserted by the hosting environment")
    now_ns: Optional[int] = Field(None, ge=0, description="Evaluation time in epoch nanoseconds")


class DecisionResponse(BaseModel):
    """Schema for a policy decision"""

    allowed: bool = Field(..., description="Whether the proposed change may be applied")
    kind: Optional[ErrorKind] = Field(None, description="Denial kind; null when allowed")
    reason: Optional[str] = Field(None, description="Human-readable denial reason; null when allowed")
