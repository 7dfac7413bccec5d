"""Policy evaluation endpoints (called by the dispatch layer per proposed change)"""
from fastapi import APIRouter, Depends, Request

from app.api.deps import get_engine, require_dispatcher
from app.middleware.rate_limit import get_rate_limit, limiter
from app.policy.engine import PolicyEngine
from app.schemas.evaluate import DecisionResponse, EvaluateDeleteRequest, EvaluateWriteRequest

router = APIRouter(prefix="/evaluate", tags=["evaluation"])


@router.post("/write", response_model=DecisionResponse)
@limiter.limit(get_rate_limit("evaluate"))
def evaluate_write(
    request: Request,
    data: EvaluateWriteRequest,
    engine: PolicyEngine = Depends(get_engine),
    _: str = Depends(require_dispatcher),
):
    """
    Decide whether a proposed write may be applied (Dispatch auth).

    Always answers 200; a denial is reported as ``allowed: false`` with the
    denial ``kind`` and a ``reason`` suitable for showing to the end user.
    Accepted admin-profile and profit-distribution writes are recorded in
    the admin audit log before the decision is returned.
    """
    decision = engine.evaluate_write(
        collection=data.collection,
        key=data.key,
        proposed=data.proposed,
        current=data.current,
        caller=data.caller,
        now_ns=data.now_ns,
    )
    return DecisionResponse(**decision._asdict())


@router.post("/delete", response_model=DecisionResponse)
@limiter.limit(get_rate_limit("evaluate"))
def evaluate_delete(
    request: Request,
    data: EvaluateDeleteRequest,
    engine: PolicyEngine = Depends(get_engine),
    _: str = Depends(require_dispatcher),
):
    """Decide whether a proposed delete may be applied (Dispatch auth)."""
    decision = engine.evaluate_delete(
        collection=data.collection,
        key=data.key,
        caller=data.caller,
        now_ns=data.now_ns,
    )
    return DecisionResponse(**decision._asdict())
