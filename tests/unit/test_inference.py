import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
from replicate.exceptions import ReplicateException

from tryon.core.exceptions import InputValidationError, RemoteJobError
from tryon.modules.tryon.inference import InferenceClient, normalize_output
from tryon.modules.tryon.schemas import default_description


class ProviderRejected(ReplicateException):
    pass


@pytest.fixture
def replicate_client():
    client = MagicMock()
    client.async_run = AsyncMock(return_value="https://cdn.example/out.png")
    client.predictions.async_get = AsyncMock()
    client.predictions.async_cancel = AsyncMock()
    return client


@pytest.fixture
def inference(replicate_client):
    return InferenceClient(model="cuuupid/idm-vton:test", client=replicate_client)


def make_prediction(**overrides):
    fields = dict(
        id="pred-123",
        status="processing",
        output=None,
        error=None,
        created_at="2024-05-20T10:00:00Z",
        completed_at=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("", "garment"),
        (None, "garment"),
        ("   ", "   "),
        ("blue jacket", "blue jacket"),
    ],
)
def test_default_description(text, expected):
    assert default_description(text) == expected


@pytest.mark.asyncio
async def test_submit_sends_model_input(inference, replicate_client):
    output = await inference.submit("https://x/person.jpg", "https://x/garment.png", "blue jacket")

    assert output == "https://cdn.example/out.png"
    replicate_client.async_run.assert_awaited_once_with(
        "cuuupid/idm-vton:test",
        input={
            "garm_img": "https://x/garment.png",
            "human_img": "https://x/person.jpg",
            "garment_des": "blue jacket",
        },
        use_file_output=False,
    )


@pytest.mark.asyncio
async def test_submit_keeps_list_output(inference, replicate_client):
    replicate_client.async_run.return_value = ["https://cdn.example/a.png", "https://cdn.example/b.png"]

    output = await inference.submit("h", "g", "garment")

    assert output == ["https://cdn.example/a.png", "https://cdn.example/b.png"]


def test_normalize_file_output_objects():
    file_output = SimpleNamespace(url="https://replicate.delivery/out.png")
    assert normalize_output(file_output) == "https://replicate.delivery/out.png"
    assert normalize_output([file_output]) == ["https://replicate.delivery/out.png"]


@pytest.mark.asyncio
async def test_submit_provider_error_becomes_remote_job_error(inference, replicate_client):
    cause = ProviderRejected("prediction failed: CUDA out of memory")
    replicate_client.async_run.side_effect = cause

    with pytest.raises(RemoteJobError) as exc_info:
        await inference.submit("h", "g", "garment")

    assert exc_info.value.message == "prediction failed: CUDA out of memory"
    assert exc_info.value.__cause__ is cause
    assert replicate_client.async_run.await_count == 1


@pytest.mark.asyncio
async def test_submit_transport_error_becomes_remote_job_error(inference, replicate_client):
    replicate_client.async_run.side_effect = httpx.ConnectError("connection refused")

    with pytest.raises(RemoteJobError, match="connection refused"):
        await inference.submit("h", "g", "garment")


@pytest.mark.asyncio
async def test_get_status_fetches_fresh(inference, replicate_client):
    replicate_client.predictions.async_get.side_effect = [
        make_prediction(status="processing"),
        make_prediction(
            status="succeeded",
            output="https://cdn.example/out.png",
            completed_at="2024-05-20T10:00:30Z",
        ),
    ]

    first = await inference.get_status("pred-123")
    second = await inference.get_status("pred-123")

    assert first.status == "processing"
    assert second.status == "succeeded"
    assert second.model_dump(by_alias=True) == {
        "id": "pred-123",
        "status": "succeeded",
        "output": "https://cdn.example/out.png",
        "error": None,
        "createdAt": "2024-05-20T10:00:00Z",
        "completedAt": "2024-05-20T10:00:30Z",
    }
    assert replicate_client.predictions.async_get.await_count == 2


@pytest.mark.parametrize("job_id", ["", "   "])
@pytest.mark.asyncio
async def test_missing_job_id_is_rejected(inference, replicate_client, job_id):
    with pytest.raises(InputValidationError, match="Prediction ID is required"):
        await inference.get_status(job_id)
    with pytest.raises(InputValidationError):
        await inference.cancel(job_id)

    replicate_client.predictions.async_get.assert_not_called()
    replicate_client.predictions.async_cancel.assert_not_called()


@pytest.mark.asyncio
async def test_cancel(inference, replicate_client):
    replicate_client.predictions.async_cancel.return_value = make_prediction(status="canceled")

    result = await inference.cancel("pred-123")

    assert result.status == "canceled"
    replicate_client.predictions.async_cancel.assert_awaited_once_with("pred-123")


@pytest.mark.asyncio
async def test_status_error_propagates(inference, replicate_client):
    replicate_client.predictions.async_get.side_effect = ProviderRejected("not found")

    with pytest.raises(RemoteJobError) as exc_info:
        await inference.get_status("missing")

    assert exc_info.value.details["job_id"] == "missing"
