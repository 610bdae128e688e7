"""
FastAPI Dependencies for the Try-On Service

Provides dependency injection for:
- Storage backend (re-selected on every request from current settings)
- Inference client (singleton, one Replicate client per process)
- Orchestrator (per-request, wired from the two above)
"""

from typing import Optional

from fastapi import Depends

from tryon.core.config import settings
from tryon.core.storage import StorageBackend, select_storage
from tryon.modules.tryon.inference import InferenceClient
from tryon.modules.tryon.orchestrator import TryOnOrchestrator

_inference_client: Optional[InferenceClient] = None


def get_storage() -> StorageBackend:
    """Storage backend for this request - ready for FastAPI Depends()."""
    return select_storage(settings)


def get_inference_client() -> InferenceClient:
    global _inference_client
    if _inference_client is None:
        _inference_client = InferenceClient.from_settings(settings)
    return _inference_client


def get_orchestrator(
    storage: StorageBackend = Depends(get_storage),
    inference: InferenceClient = Depends(get_inference_client),
) -> TryOnOrchestrator:
    return TryOnOrchestrator(storage, inference)
