"""
Try-On Orchestrator

Runs one request through START -> STAGING -> SUBMITTING -> DONE. On any
failure after staging, remotely staged copies are deleted (best effort) and
the original exception is re-raised untouched. Nothing is retried.

Local input files are not touched here; the caller removes them once
generate() returns or raises.
"""

import asyncio
from enum import Enum
from pathlib import Path
from typing import List

from tryon.core.exceptions import InputValidationError, TryOnBaseException
from tryon.core.logging import get_logger, LogContext
from tryon.core.metrics import record_generation, track_stage_latency
from tryon.core.storage import StorageBackend
from tryon.modules.tryon.inference import InferenceClient
from tryon.modules.tryon.schemas import (
    TryOnInput,
    TryOnRequest,
    TryOnResult,
    default_description,
)
from tryon.modules.tryon.staging import AssetStager

logger = get_logger(__name__)


class OrchestrationState(str, Enum):
    START = "start"
    STAGING = "staging"
    SUBMITTING = "submitting"
    DONE = "done"
    FAILED = "failed"


class TryOnOrchestrator:

    def __init__(self, storage: StorageBackend, inference: InferenceClient):
        self.storage = storage
        self.inference = inference
        self.stager = AssetStager(storage)

    async def generate(self, request: TryOnRequest) -> TryOnResult:
        description = default_description(request.text_prompt)
        staged_urls: List[str] = []
        state = OrchestrationState.START

        with LogContext(stage=state.value) as ctx:
            try:
                self._check_inputs(request)

                state = OrchestrationState.STAGING
                ctx.set_stage(state.value)
                with track_stage_latency(state.value):
                    staged = await self.stager.stage(
                        request.person_image_path,
                        request.garment_image_path,
                    )
                staged_urls = staged.urls

                state = OrchestrationState.SUBMITTING
                ctx.set_stage(state.value)
                logger.info(
                    "model_input_prepared",
                    human_img=staged.person.public_url,
                    garment_img=staged.garment.public_url,
                    garment_description=description,
                )
                with track_stage_latency(state.value):
                    output_url = await self.inference.submit(
                        staged.person.public_url,
                        staged.garment.public_url,
                        description,
                    )

                state = OrchestrationState.DONE
                ctx.set_stage(state.value)
            except Exception as e:
                ctx.set_stage(OrchestrationState.FAILED.value)
                if isinstance(e, TryOnBaseException) and e.stage is None:
                    e.stage = state.value
                logger.error(
                    "tryon_failed",
                    failed_state=state.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                record_generation("failed")
                await self._cleanup_staged(staged_urls)
                raise

            record_generation("succeeded")
            logger.info("tryon_completed", output_url=output_url)

        return TryOnResult(
            output_url=output_url,
            input=TryOnInput(
                human_img=staged.person.public_url,
                garment_img=staged.garment.public_url,
                garment_description=description,
            ),
        )

    @staticmethod
    def _check_inputs(request: TryOnRequest):
        if not Path(request.person_image_path).exists():
            raise InputValidationError("Person image file not found")
        if not Path(request.garment_image_path).exists():
            raise InputValidationError("Garment image file not found")

    async def _cleanup_staged(self, urls: List[str]):
        # Local-backend URLs point at the caller's temp files
        if not urls or self.storage.kind != "remote" or not self.storage.is_configured():
            return

        logger.info("cleaning_up_staged_files", count=len(urls))
        results = await asyncio.gather(
            *(self.storage.delete_file(url) for url in urls),
            return_exceptions=True,
        )
        for url, result in zip(urls, results):
            if result is not True:
                logger.warning("staged_file_not_deleted", url=url, result=repr(result))
