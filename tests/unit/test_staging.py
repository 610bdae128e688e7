import asyncio

import pytest
from unittest.mock import AsyncMock

from tryon.core.exceptions import StorageError
from tryon.modules.tryon.staging import AssetStager


@pytest.mark.asyncio
async def test_stage_returns_both_urls(mock_storage, image_files):
    person, garment = image_files

    staged = await AssetStager(mock_storage).stage(str(person), str(garment))

    assert staged.person.local_path == str(person)
    assert staged.person.public_url.endswith("id-person.jpg")
    assert staged.garment.public_url.endswith("id-garment.png")
    assert staged.urls == [staged.person.public_url, staged.garment.public_url]
    assert mock_storage.upload_file.await_count == 2


@pytest.mark.asyncio
async def test_stage_runs_uploads_concurrently(mock_storage):
    started = []
    release = asyncio.Event()

    async def upload(path, name=None):
        started.append(path)
        if len(started) == 2:
            release.set()
        await asyncio.wait_for(release.wait(), timeout=1)
        return f"https://example/{path}"

    mock_storage.upload_file = AsyncMock(side_effect=upload)

    staged = await AssetStager(mock_storage).stage("p.jpg", "g.png")

    assert started == ["p.jpg", "g.png"]
    assert staged.urls == ["https://example/p.jpg", "https://example/g.png"]


@pytest.mark.asyncio
async def test_failure_lets_sibling_finish(mock_storage):
    finished = []
    error = StorageError("upload failed")

    async def upload(path, name=None):
        if path == "p.jpg":
            raise error
        await asyncio.sleep(0.01)
        finished.append(path)
        return "https://example/g.png"

    mock_storage.upload_file = AsyncMock(side_effect=upload)

    with pytest.raises(StorageError) as exc_info:
        await AssetStager(mock_storage).stage("p.jpg", "g.png")

    assert exc_info.value is error
    assert finished == ["g.png"]
    mock_storage.delete_file.assert_not_called()


@pytest.mark.asyncio
async def test_first_error_in_argument_order_wins(mock_storage):
    person_error = StorageError("person failed")
    garment_error = StorageError("garment failed")

    async def upload(path, name=None):
        if path == "p.jpg":
            await asyncio.sleep(0.01)
            raise person_error
        raise garment_error

    mock_storage.upload_file = AsyncMock(side_effect=upload)

    with pytest.raises(StorageError) as exc_info:
        await AssetStager(mock_storage).stage("p.jpg", "g.png")

    assert exc_info.value is person_error
