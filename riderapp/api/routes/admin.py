"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health        -- simple health check
"""

from fastapi import APIRouter

from riderapp.api.schemas import HealthResponse

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
