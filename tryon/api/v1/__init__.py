"""
API v1 Router Module - Virtual Try-On

All v1 endpoints are prefixed with /api/v1/

- /api/v1/tryon/*  - Generation, prediction status/cancel, health
- /api/v1/metrics  - Prometheus metrics
"""

from fastapi import APIRouter

from tryon.api.v1.tryon import router as tryon_router
from tryon.api.v1.metrics import router as metrics_router

# Main v1 router
api_v1_router = APIRouter(prefix="/api/v1")

api_v1_router.include_router(tryon_router, prefix="/tryon", tags=["tryon"])
api_v1_router.include_router(metrics_router, tags=["metrics"])
