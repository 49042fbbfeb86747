"""Tests for the HTTP voice-log uploader."""
import httpx
import pytest

from contractoros.domain.voice_log import VoiceQueueItem
from contractoros.services.sync_manager import (
    AuthenticationFailedError,
    DuplicateRecordingError,
    QuotaExceededError,
    RetryableUploadError,
)
from contractoros.services.voice_uploader import UPLOAD_PATH, VoiceLogUploader


def make_item() -> VoiceQueueItem:
    return VoiceQueueItem(
        id="item-1",
        content_hash="abc",
        audio=b"RIFF-audio",
        meta={"org_id": "org-1", "user_id": "user-1", "mime_type": "audio/webm"},
    )


def make_uploader(handler, token="tok-123") -> VoiceLogUploader:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://api.test")
    return VoiceLogUploader(lambda: token, client=client)


async def test_posts_multipart_with_bearer_token():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = request.content
        return httpx.Response(201, json={"data": {"id": "log-1"}})

    uploader = make_uploader(handler)
    body = await uploader(make_item())

    assert body == {"data": {"id": "log-1"}}
    assert seen["method"] == "POST"
    assert seen["path"] == UPLOAD_PATH
    assert seen["auth"] == "Bearer tok-123"
    assert b'name="audio"' in seen["body"]
    assert b'name="metadata"' in seen["body"]
    assert b"RIFF-audio" in seen["body"]


async def test_missing_token_is_an_auth_failure():
    uploader = make_uploader(lambda request: httpx.Response(201, json={}), token=None)
    with pytest.raises(AuthenticationFailedError):
        await uploader(make_item())


@pytest.mark.parametrize(
    "status,error_type",
    [
        (401, AuthenticationFailedError),
        (403, AuthenticationFailedError),
        (409, DuplicateRecordingError),
        (413, QuotaExceededError),
        (507, QuotaExceededError),
        (429, RetryableUploadError),
        (500, RetryableUploadError),
        (503, RetryableUploadError),
    ],
)
async def test_status_codes_map_to_error_types(status, error_type):
    def handler(request):
        return httpx.Response(status, json={"error": {"code": "X", "message": "server said no"}})

    with pytest.raises(error_type) as exc_info:
        await make_uploader(handler)(make_item())
    assert str(exc_info.value) == "server said no"
    assert exc_info.value.status_code == status


async def test_network_error_is_retryable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RetryableUploadError):
        await make_uploader(handler)(make_item())
