"""Health check endpoints"""
import time
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.models.audit_log import AdminAuditLog
from app.models.document import StoredDocument

router = APIRouter(prefix="/health", tags=["health"])

# Track startup time
STARTUP_TIME = time.time()


@router.get("")
def health_check():
    """
    Basic health check endpoint

    Returns 200 if service is running
    """
    return {
        "status": "healthy",
        "service": "AdminGuard",
        "version": "0.1.0",
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/ready")
def readiness_check(db: Session = Depends(get_db)):
    """
    Readiness check - verifies the document store and audit sink are reachable

    Returns 200 if ready to serve traffic, 503 if not ready
    """
    checks: Dict[str, Any] = {
        "database": False,
        "database_latency_ms": None
    }

    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000
        checks["database"] = True
        checks["database_latency_ms"] = round(latency_ms, 2)

        if latency_ms > 1000:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={
                    "status": "degraded",
                    "checks": checks,
                    "message": "Database latency is high"
                },
            )

    except SQLAlchemyError as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "checks": checks,
                "message": f"Database check failed: {str(e)}"
            },
        )

    return {
        "status": "ready",
        "checks": checks,
        "audit_failure_mode": settings.AUDIT_FAILURE_MODE,
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/live")
def liveness_check():
    """
    Liveness check - verifies service is alive

    Used by Kubernetes liveness probe
    """
    return {
        "status": "alive",
        "uptime_seconds": round(time.time() - STARTUP_TIME, 2),
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/stats")
def health_stats(db: Session = Depends(get_db)):
    """
    Directory and audit statistics
    """
    try:
        admin_profiles = (
            db.query(StoredDocument)
            .filter(StoredDocument.collection == settings.ADMIN_PROFILES_COLLECTION)
            .count()
        )
        audit_entries = db.query(AdminAuditLog).count()
    except SQLAlchemyError as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "error",
                "message": str(e),
                "timestamp": datetime.utcnow().isoformat()
            },
        )

    return {
        "status": "healthy",
        "admin_profiles": admin_profiles,
        "audit_entries": audit_entries,
        "system": {
            "uptime_seconds": round(time.time() - STARTUP_TIME, 2),
        },
        "timestamp": datetime.utcnow().isoformat()
    }
