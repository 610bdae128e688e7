"""
Inference Job Client - IDM-VTON on Replicate

submit() blocks the calling coroutine until the prediction reaches a
terminal state. get_status()/cancel() work on prediction IDs obtained
elsewhere and always hit the provider; nothing is cached locally.
"""

from typing import Any, Optional

import httpx
import replicate
from replicate.exceptions import ReplicateException

from tryon.core.config import Settings, settings
from tryon.core.exceptions import InputValidationError, RemoteJobError
from tryon.core.logging import get_logger
from tryon.modules.tryon.schemas import OutputUrl, PredictionStatus

logger = get_logger(__name__)

PROVIDER_ERRORS = (ReplicateException, httpx.HTTPError)


def _provider_job_id(error: Exception) -> Optional[str]:
    prediction = getattr(error, "prediction", None)
    return getattr(prediction, "id", None)


def _as_url(item: Any) -> Any:
    # FileOutput objects carry the delivery URL; plain strings pass through
    return getattr(item, "url", item)


def normalize_output(output: Any) -> OutputUrl:
    if isinstance(output, (list, tuple)):
        return [_as_url(item) for item in output]
    return _as_url(output)


class InferenceClient:
    """Thin async wrapper around a Replicate model."""

    def __init__(
        self,
        api_token: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[replicate.Client] = None,
    ):
        self.model = model or settings.REPLICATE_MODEL
        self.client = client or replicate.Client(api_token=api_token)

    @classmethod
    def from_settings(cls, config: Settings) -> "InferenceClient":
        if not config.REPLICATE_API_TOKEN:
            logger.warning("replicate_token_missing")
        return cls(api_token=config.REPLICATE_API_TOKEN, model=config.REPLICATE_MODEL)

    async def submit(self, human_img_url: str, garment_img_url: str, description: str) -> OutputUrl:
        """
        Run the try-on model and wait for its output.

        Raises:
            RemoteJobError: the provider rejected or failed the prediction
        """
        payload = {
            "garm_img": garment_img_url,
            "human_img": human_img_url,
            "garment_des": description,
        }
        logger.info("prediction_submitted", model=self.model, garment_description=description)

        try:
            output = await self.client.async_run(self.model, input=payload, use_file_output=False)
        except PROVIDER_ERRORS as e:
            logger.error("prediction_failed", error=str(e), error_type=type(e).__name__)
            raise RemoteJobError(str(e), job_id=_provider_job_id(e)) from e

        logger.info("prediction_completed")
        return normalize_output(output)

    async def get_status(self, job_id: str) -> PredictionStatus:
        self._require_job_id(job_id)
        try:
            prediction = await self.client.predictions.async_get(job_id)
        except PROVIDER_ERRORS as e:
            logger.error("prediction_status_failed", job_id=job_id, error=str(e))
            raise RemoteJobError(str(e), job_id=job_id) from e
        return self._to_status(prediction)

    async def cancel(self, job_id: str) -> PredictionStatus:
        self._require_job_id(job_id)
        try:
            prediction = await self.client.predictions.async_cancel(job_id)
        except PROVIDER_ERRORS as e:
            logger.error("prediction_cancel_failed", job_id=job_id, error=str(e))
            raise RemoteJobError(str(e), job_id=job_id) from e

        logger.info("prediction_canceled", job_id=job_id, status=prediction.status)
        return self._to_status(prediction)

    @staticmethod
    def _require_job_id(job_id: str):
        if not job_id or not job_id.strip():
            raise InputValidationError("Prediction ID is required")

    @staticmethod
    def _to_status(prediction) -> PredictionStatus:
        output = prediction.output
        return PredictionStatus(
            id=prediction.id,
            status=prediction.status,
            output=normalize_output(output) if output is not None else None,
            error=prediction.error,
            created_at=prediction.created_at,
            completed_at=prediction.completed_at,
        )
