"""
API tests for video jobs and the FinOps endpoints.
"""

import os
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from filmstudio.services import media, video_jobs
from filmstudio.services.base_gen_service import GenerationError


@pytest.fixture
async def project_id(client):
    resp = await client.post(
        "/api/projects/", json={"name": "Motion", "bible": {"script": "EXT. BEACH - DAY"}}
    )
    return resp.json()["id"]


@pytest.fixture
async def shots(client, project_id):
    scenes = (await client.post("/api/director/scenes", json={"project_id": project_id})).json()
    return (await client.post(f"/api/director/scenes/{scenes[0]['id']}/shots")).json()


@pytest.fixture
async def framed_shot(client, shots):
    await client.post(f"/api/director/shots/{shots[0]['id']}/image", json={"force": True})
    return shots[0]


def _animate_body(project_id, shot_id, **overrides):
    body = {"project_id": project_id, "shot_id": shot_id, "motion_prompt": "Slow push in"}
    body.update(overrides)
    return body


class TestAnimateShot:
    async def test_requires_frame(self, client, project_id, shots):
        resp = await client.post(
            "/api/video/animate-shot", json=_animate_body(project_id, shots[1]["id"], force=True)
        )
        assert resp.status_code == 400

    async def test_requires_approval(self, client, project_id, framed_shot):
        resp = await client.post("/api/video/animate-shot", json=_animate_body(project_id, framed_shot["id"]))

        assert resp.status_code == 412
        assert resp.json()["estimated_cost"] == 0.4
        assert (await client.get(f"/api/video/projects/{project_id}/jobs")).json() == []

    async def test_completed_job(self, client, project_id, framed_shot):
        resp = await client.post(
            "/api/video/animate-shot", json=_animate_body(project_id, framed_shot["id"], force=True)
        )

        assert resp.status_code == 201
        job = resp.json()
        assert job["status"] == "completed"
        assert job["provider"] == "veo3"
        assert job["shot_id"] == framed_shot["id"]
        assert job["task_id"].startswith("mock-")
        assert job["video_url"].endswith(".mp4")

        usage = (await client.get(f"/api/finops/projects/{project_id}/usage")).json()
        video = next(i for i in usage["breakdown"] if i["action_type"] == "VIDEO_GEN")
        assert video["cost"] == 0.4

    async def test_locked_character_motion_prompt(self, client, project_id, framed_shot):
        base = f"/api/projects/{project_id}/characters"
        char = (await client.post(f"{base}/", json={"name": "Maya"})).json()
        await client.post(f"{base}/{char['id']}/lock")

        resp = await client.post(
            "/api/video/animate-shot", json=_animate_body(project_id, framed_shot["id"], force=True)
        )

        assert "MOTION: Slow push in" in resp.json()["prompt"]
        assert "CHARACTER CONSTRAINT" in resp.json()["prompt"]

    async def test_provider_failure_is_recorded(self, client, project_id, framed_shot):
        failing = AsyncMock(side_effect=GenerationError("video_gen", "quota exceeded"))
        with patch.object(video_jobs, "generate_video", failing):
            resp = await client.post(
                "/api/video/animate-shot",
                json=_animate_body(project_id, framed_shot["id"], provider="sora", force=True),
            )

        assert resp.status_code == 201
        job = resp.json()
        assert job["status"] == "failed"
        assert "quota exceeded" in job["error"]

        stored = (await client.get(f"/api/video/jobs/{job['id']}")).json()
        assert stored["status"] == "failed"
        usage = (await client.get(f"/api/finops/projects/{project_id}/usage")).json()
        assert "VIDEO_GEN" not in {i["action_type"] for i in usage["breakdown"]}

    async def test_unreachable_frame_is_recorded(self, client, project_id, framed_shot):
        unreachable = AsyncMock(side_effect=httpx.ConnectError("All connection attempts failed"))
        with patch.object(video_jobs, "load_image", unreachable):
            resp = await client.post(
                "/api/video/animate-shot", json=_animate_body(project_id, framed_shot["id"], force=True)
            )

        assert resp.status_code == 201
        job = resp.json()
        assert job["status"] == "failed"
        assert "All connection attempts failed" in job["error"]
        jobs = (await client.get(f"/api/video/projects/{project_id}/jobs")).json()
        assert [j["id"] for j in jobs] == [job["id"]]

    async def test_missing_local_frame_is_recorded(self, client, project_id, framed_shot):
        listed = (await client.get(f"/api/director/scenes/{framed_shot['scene_id']}/shots")).json()
        frame_url = next(s["image_url"] for s in listed if s["id"] == framed_shot["id"])
        os.remove(media.media_path(media.rel_path_from_url(frame_url)))

        resp = await client.post(
            "/api/video/animate-shot", json=_animate_body(project_id, framed_shot["id"], force=True)
        )

        assert resp.status_code == 201
        assert resp.json()["status"] == "failed"
        usage = (await client.get(f"/api/finops/projects/{project_id}/usage")).json()
        assert "VIDEO_GEN" not in {i["action_type"] for i in usage["breakdown"]}

    async def test_shot_from_other_project(self, client, framed_shot):
        other = (await client.post("/api/projects/", json={"name": "Other"})).json()
        resp = await client.post(
            "/api/video/animate-shot", json=_animate_body(other["id"], framed_shot["id"], force=True)
        )
        assert resp.status_code == 400

    async def test_unknown_provider_rejected(self, client, project_id, framed_shot):
        resp = await client.post(
            "/api/video/animate-shot",
            json=_animate_body(project_id, framed_shot["id"], provider="pika"),
        )
        assert resp.status_code == 422


class TestStoryboardVideo:
    async def test_sequence(self, client, project_id, framed_shot):
        resp = await client.post(
            "/api/video/from-storyboard", json={"project_id": project_id, "force": True}
        )

        assert resp.status_code == 201
        job = resp.json()
        assert job["provider"] == "replicate"
        assert job["shot_id"] is None
        assert job["duration"] == 6
        assert job["prompt"].startswith("Create a cinematic video sequence")

        jobs = (await client.get(f"/api/video/projects/{project_id}/jobs")).json()
        assert [j["id"] for j in jobs] == [job["id"]]

    async def test_requires_shots(self, client, project_id):
        resp = await client.post(
            "/api/video/from-storyboard", json={"project_id": project_id, "force": True}
        )
        assert resp.status_code == 400

    def test_sequence_helpers(self):
        assert video_jobs.sequence_duration(2) == 6
        assert video_jobs.sequence_duration(50) == 60
        prompt = video_jobs.storyboard_sequence_prompt(["Wide", "Close"])
        assert "Shot 1: Wide\nShot 2: Close" in prompt

    async def test_unknown_job(self, client):
        assert (await client.get("/api/video/jobs/999")).status_code == 404


class TestFinOps:
    async def test_pricing(self, client):
        body = (await client.get("/api/finops/pricing")).json()
        assert body["prices"]["black-forest-labs/flux-pro"] == 0.055
        assert body["approval_threshold"] == 0.01

    async def test_estimate(self, client):
        resp = await client.post(
            "/api/finops/estimate", json={"model_id": "stability-ai/sdxl", "quantity": 2}
        )
        assert resp.json() == {
            "model_id": "stability-ai/sdxl",
            "quantity": 2,
            "estimated_cost": 0.04,
            "requires_approval": True,
        }

    async def test_video_estimate(self, client):
        resp = await client.post(
            "/api/finops/video-estimate",
            json={"provider": "sora", "duration": 8, "resolution": "1080p", "shot_count": 10},
        )
        body = resp.json()
        assert body["estimate"]["total_cost"] == 1.87
        assert body["project"]["total_shots"] == 10
        assert body["recommended_provider"] == "veo3"

    async def test_ledger_limit(self, client, project_id, shots):
        ledger = (await client.get(f"/api/finops/projects/{project_id}/ledger?limit=1")).json()
        assert len(ledger) == 1
        assert ledger[0]["action_type"] == "SHOT_GENERATION"

    async def test_empty_usage(self, client, project_id):
        usage = (await client.get(f"/api/finops/projects/{project_id}/usage")).json()
        assert usage == {"project_id": project_id, "total_cost": 0.0, "breakdown": []}
