"""
Health check endpoint for deployment monitoring.
"""
from fastapi import APIRouter
from datetime import datetime
from sqlalchemy import text
from bgv.db.session import SessionLocal
from bgv.services.storage import get_storage_provider

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
def health_check():
    """
    Health check endpoint for deployment monitoring.

    Returns 200 if the API is healthy and database is accessible.
    """
    status = "healthy"

    # Check database connectivity
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {str(e)}"
        status = "degraded"
    finally:
        db.close()

    return {
        "status": status,
        "timestamp": datetime.utcnow().isoformat(),
        "database": db_status,
        "storage": get_storage_provider().provider_name,
        "version": "1.0.0",
    }
