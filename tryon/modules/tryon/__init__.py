"""
Try-On Module

Staging, inference and orchestration for a single try-on request.
"""

from tryon.modules.tryon.inference import InferenceClient
from tryon.modules.tryon.orchestrator import TryOnOrchestrator
from tryon.modules.tryon.staging import AssetStager

__all__ = ["AssetStager", "InferenceClient", "TryOnOrchestrator"]
