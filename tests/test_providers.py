"""
Tests for the video providers, the Replicate wrapper and the generation service base.
"""

import asyncio
import base64
import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from filmstudio.services.base_gen_service import BaseGenService, GenerationError, GenServiceConfig
from filmstudio.services.providers import replicate_video, sora_video, veo3_video
from filmstudio.services.replicate_service import first_output_url


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestSora:
    def test_nearest_supported_length(self):
        assert sora_video.nearest_seconds(1) == 4
        assert sora_video.nearest_seconds(6) == 4
        assert sora_video.nearest_seconds(10) == 8
        assert sora_video.nearest_seconds(30) == 12

    def test_video_size(self):
        assert sora_video.video_size("1080p", "9:16") == "1024x1792"
        assert sora_video.video_size("4k", "16:9") == "1280x720"

    async def test_create_and_poll(self):
        polls = iter(["queued", "in_progress", "completed"])
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path))
            assert request.headers["Authorization"] == "Bearer sk-test"
            if request.method == "POST":
                return httpx.Response(200, json={"id": "video_123", "status": "queued"})
            return httpx.Response(200, json={"id": "video_123", "status": next(polls)})

        async with _client(handler) as client:
            result = await sora_video.generate_video(
                prompt="A dolly shot",
                model="sora-2",
                api_key="sk-test",
                base_url="https://api.example.com/v1/",
                image_bytes=b"png-bytes",
                duration=6,
                http_client=client,
                poll_interval=0,
            )

        assert result.video_url == "https://api.example.com/v1/videos/video_123/content"
        assert result.task_id == "video_123"
        assert result.duration == 4
        assert result.download_headers == {"Authorization": "Bearer sk-test"}
        assert seen[0] == ("POST", "/v1/videos")
        assert len(seen) == 4

    async def test_failed_task(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, json={"id": "v1"})
            return httpx.Response(200, json={"status": "failed", "error": {"message": "policy"}})

        async with _client(handler) as client:
            with pytest.raises(RuntimeError, match="policy"):
                await sora_video.generate_video(
                    prompt="x", model="sora-2", api_key="k", base_url="https://api.example.com",
                    http_client=client, poll_interval=0,
                )

    async def test_times_out(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, json={"id": "v1"})
            return httpx.Response(200, json={"status": "in_progress"})

        async with _client(handler) as client:
            with pytest.raises(RuntimeError, match="timed out"):
                await sora_video.generate_video(
                    prompt="x", model="sora-2", api_key="k", base_url="https://api.example.com",
                    http_client=client, poll_interval=0.01, poll_timeout=0.02,
                )

    async def test_requires_key(self):
        with pytest.raises(ValueError):
            await sora_video.generate_video(prompt="x", model="m", api_key="", base_url="u")


class TestVeo3:
    def test_request_with_image(self):
        body = veo3_video.build_request("Pan left", b"abc", "image/jpeg", 8, "1080p", "16:9")

        instance = body["instances"][0]
        assert instance["prompt"] == "Pan left"
        assert instance["image"]["bytesBase64Encoded"] == base64.b64encode(b"abc").decode()
        assert instance["image"]["mimeType"] == "image/jpeg"
        assert body["parameters"] == {
            "aspectRatio": "16:9", "durationSeconds": 8, "resolution": "1080p",
        }

    def test_extract_video_uri(self):
        operation = {
            "response": {"generateVideoResponse": {"generatedSamples": [{"video": {"uri": "gs://x"}}]}}
        }
        assert veo3_video.extract_video_uri(operation) == "gs://x"
        with pytest.raises(RuntimeError):
            veo3_video.extract_video_uri({"done": True})

    async def test_long_running_operation(self):
        done_op = {
            "name": "operations/op-1",
            "done": True,
            "response": {
                "generateVideoResponse": {
                    "generatedSamples": [{"video": {"uri": "https://files.example.com/v.mp4"}}]
                }
            },
        }

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["x-goog-api-key"] == "g-key"
            if request.method == "POST":
                assert request.url.path.endswith("/models/veo-3.0:predictLongRunning")
                assert json.loads(request.content)["instances"][0]["prompt"] == "Orbit"
                return httpx.Response(200, json={"name": "operations/op-1"})
            assert request.url.path.endswith("/operations/op-1")
            return httpx.Response(200, json=done_op)

        async with _client(handler) as client:
            result = await veo3_video.generate_video(
                prompt="Orbit",
                model="veo-3.0",
                api_key="g-key",
                base_url="https://gen.example.com/v1beta",
                http_client=client,
                poll_interval=0,
            )

        assert result.video_url == "https://files.example.com/v.mp4"
        assert result.task_id == "operations/op-1"
        assert result.provider == "veo3"

    async def test_operation_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, json={"name": "operations/op-2"})
            return httpx.Response(200, json={"name": "operations/op-2", "error": {"message": "quota"}})

        async with _client(handler) as client:
            with pytest.raises(RuntimeError, match="quota"):
                await veo3_video.generate_video(
                    prompt="x", model="veo", api_key="k", base_url="https://gen.example.com",
                    http_client=client, poll_interval=0,
                )

    async def test_http_error_propagates(self):
        async with _client(lambda request: httpx.Response(403, json={})) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await veo3_video.generate_video(
                    prompt="x", model="veo", api_key="k", base_url="https://gen.example.com",
                    http_client=client, poll_interval=0,
                )


class TestReplicate:
    def test_first_output_url(self):
        assert first_output_url("https://r.example.com/a.png") == "https://r.example.com/a.png"
        assert first_output_url(["https://r.example.com/a.png", "b"]) == "https://r.example.com/a.png"
        assert first_output_url(MagicMock(url="https://r.example.com/f.mp4")) == "https://r.example.com/f.mp4"

    def test_unusable_output(self):
        with pytest.raises(RuntimeError):
            first_output_url([])
        with pytest.raises(RuntimeError):
            first_output_url(None)

    async def test_video_sends_first_frame(self):
        client = MagicMock()
        client.async_run = AsyncMock(return_value=["https://r.example.com/v.mp4"])

        result = await replicate_video.generate_video(
            prompt="Rain", model="minimax/video-01", image_bytes=b"img", client=client,
        )

        assert result.video_url == "https://r.example.com/v.mp4"
        assert result.provider == "replicate"
        model_input = client.async_run.call_args.kwargs["input"]
        assert model_input["first_frame_image"] == "data:image/png;base64," + base64.b64encode(b"img").decode()


class _FlakyService(BaseGenService[str]):
    service_name = "flaky"

    def __init__(self, failures: int, config: GenServiceConfig):
        super().__init__(config)
        self.failures = failures

    async def _generate(self, **kwargs):
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError("provider down")
        return "ok"

    def _estimate_cost(self, **kwargs):
        return 0.25


class _SlowService(BaseGenService[str]):
    service_name = "slow"

    async def _generate(self, **kwargs):
        await asyncio.sleep(1)
        return "late"


class TestBaseGenService:
    """Single-shot by default; failures surface as GenerationError."""

    async def test_success_records_metrics(self):
        service = _FlakyService(0, GenServiceConfig())
        result = await service.execute()

        assert result.data == "ok"
        assert result.retries_used == 0
        metrics = service.get_metrics()
        assert metrics["total_calls"] == 1
        assert metrics["total_cost"] == 0.25
        assert metrics["error_rate"] == 0

    async def test_single_shot_failure(self):
        service = _FlakyService(1, GenServiceConfig())
        with pytest.raises(GenerationError) as exc_info:
            await service.execute()

        assert exc_info.value.service == "flaky"
        assert "provider down" in str(exc_info.value)
        assert service.get_metrics()["total_errors"] == 1

    async def test_retry_when_configured(self):
        service = _FlakyService(1, GenServiceConfig(max_retries=1, retry_delay=0))
        result = await service.execute()
        assert result.retries_used == 1

    async def test_timeout(self):
        service = _SlowService(GenServiceConfig(timeout=0.01))
        with pytest.raises(GenerationError, match="timed out"):
            await service.execute()
