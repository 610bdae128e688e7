"""
Try-On Endpoints

POST   /api/v1/tryon/generate                 - Generate a virtual try-on image
GET    /api/v1/tryon/status/{prediction_id}   - Get prediction status
DELETE /api/v1/tryon/cancel/{prediction_id}   - Cancel a prediction
GET    /api/v1/tryon/health                   - Service health incl. storage
"""

import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel

from tryon.core.config import settings
from tryon.core.exceptions import InputValidationError
from tryon.core.logging import get_logger, LogContext
from tryon.core.storage import StorageBackend, StorageDescriptor
from tryon.api.dependencies import get_inference_client, get_orchestrator, get_storage
from tryon.modules.tryon.inference import InferenceClient
from tryon.modules.tryon.orchestrator import TryOnOrchestrator
from tryon.modules.tryon.schemas import TryOnRequest

logger = get_logger(__name__)
router = APIRouter()

UPLOAD_CHUNK_SIZE = 1024 * 1024


# =============================================================================
# Response Schemas
# =============================================================================

class GenerateData(BaseModel):
    outputUrl: Any
    input: Dict[str, str]
    storage: StorageDescriptor
    message: str = "Virtual try-on generated successfully"


class GenerateResponse(BaseModel):
    success: bool = True
    data: GenerateData


class StatusResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]


class CancelResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]
    message: str = "Prediction canceled successfully"


class HealthResponse(BaseModel):
    success: bool = True
    status: str = "healthy"
    message: str = "Try-on service is healthy"
    timestamp: str
    version: str
    storage: StorageDescriptor


# =============================================================================
# Upload Helpers
# =============================================================================

def validate_image(upload: UploadFile, field: str):
    if upload.content_type not in settings.allowed_mime_types:
        raise InputValidationError(
            "Invalid file type. Only JPEG, PNG, and WebP images are allowed.",
            details={"field": field, "content_type": upload.content_type},
        )


async def save_upload(upload: UploadFile, field: str) -> Path:
    """Write an upload into UPLOAD_PATH, enforcing the size limit."""
    original = Path(upload.filename or "upload").name
    target = Path(settings.UPLOAD_PATH) / f"{field}-{uuid.uuid4()}-{original}"
    written = 0

    try:
        with open(target, "wb") as f:
            while True:
                chunk = await upload.read(UPLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > settings.MAX_FILE_SIZE_BYTES:
                    raise InputValidationError(
                        "File too large",
                        details={
                            "field": field,
                            "max_size_mb": settings.MAX_FILE_SIZE_BYTES / 1024 / 1024,
                        },
                    )
                f.write(chunk)
    except Exception:
        cleanup_files([target])
        raise

    return target


def cleanup_files(paths: List[Path]):
    """Remove local temp files; failures are logged, never raised."""
    for path in paths:
        try:
            if path.exists():
                path.unlink()
                logger.info("local_file_cleaned_up", path=str(path))
        except OSError as e:
            logger.error("local_file_cleanup_failed", path=str(path), error=str(e))


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/generate", response_model=GenerateResponse)
async def generate_tryon(
    personImage: UploadFile = File(...),
    garmentImage: UploadFile = File(...),
    textPrompt: Optional[str] = Form(default=None),
    orchestrator: TryOnOrchestrator = Depends(get_orchestrator),
):
    """
    Generate a virtual try-on image.

    Both images are validated before anything is staged. The uploaded
    temp files are removed once the orchestration finishes, whatever
    the outcome.
    """
    validate_image(personImage, "personImage")
    validate_image(garmentImage, "garmentImage")

    request_id = str(uuid.uuid4())
    saved: List[Path] = []

    with LogContext(request_id=request_id):
        try:
            saved.append(await save_upload(personImage, "personImage"))
            saved.append(await save_upload(garmentImage, "garmentImage"))

            logger.info(
                "tryon_request_received",
                person_image=saved[0].name,
                garment_image=saved[1].name,
                text_prompt=textPrompt or None,
            )

            result = await orchestrator.generate(
                TryOnRequest(
                    person_image_path=str(saved[0]),
                    garment_image_path=str(saved[1]),
                    text_prompt=textPrompt,
                )
            )
        finally:
            cleanup_files(saved)

    payload = result.model_dump(by_alias=True)
    return GenerateResponse(
        data=GenerateData(
            outputUrl=payload["outputUrl"],
            input=payload["input"],
            storage=orchestrator.storage.describe(),
        )
    )


@router.get("/status/{prediction_id}", response_model=StatusResponse)
async def get_prediction_status(
    prediction_id: str,
    inference: InferenceClient = Depends(get_inference_client),
):
    """Fetch the current state of a prediction from the provider."""
    prediction = await inference.get_status(prediction_id)
    return StatusResponse(data=prediction.model_dump(by_alias=True))


@router.delete("/cancel/{prediction_id}", response_model=CancelResponse)
async def cancel_prediction(
    prediction_id: str,
    inference: InferenceClient = Depends(get_inference_client),
):
    result = await inference.cancel(prediction_id)
    return CancelResponse(data=result.model_dump(by_alias=True))


@router.get("/health", response_model=HealthResponse)
async def health(storage: StorageBackend = Depends(get_storage)):
    return HealthResponse(
        timestamp=datetime.utcnow().isoformat() + "Z",
        version=settings.APP_VERSION,
        storage=storage.describe(),
    )
