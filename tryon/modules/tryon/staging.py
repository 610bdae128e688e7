"""
Asset staging - uploads the person and garment images side by side.
"""

import asyncio

from tryon.core.logging import get_logger
from tryon.core.storage import StorageBackend
from tryon.modules.tryon.schemas import StagedAsset, StagedPair

logger = get_logger(__name__)


class AssetStager:
    """Fan-out/fan-in upload of both request images to one storage backend."""

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    async def stage(self, person_path: str, garment_path: str) -> StagedPair:
        """
        Upload both files concurrently.

        Both uploads always run to completion; if either failed, the first
        error in (person, garment) order is raised and nothing is returned.
        Cleaning up a sibling that did succeed is left to the caller.
        """
        results = await asyncio.gather(
            self.storage.upload_file(person_path),
            self.storage.upload_file(garment_path),
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, BaseException):
                logger.error(
                    "staging_failed",
                    backend=self.storage.kind,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                raise result

        person_url, garment_url = results
        logger.info("staging_completed", backend=self.storage.kind, person_url=person_url, garment_url=garment_url)
        return StagedPair(
            person=StagedAsset(local_path=person_path, public_url=person_url),
            garment=StagedAsset(local_path=garment_path, public_url=garment_url),
        )
