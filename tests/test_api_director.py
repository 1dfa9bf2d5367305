"""
API tests for the director breakdown, characters, storyboard frames and the generator.
"""

import pytest

BIBLE = {
    "script": "INT. CONTROL ROOM - NIGHT\nMaya watches.\n\nEXT. ROOFTOP - DAWN\nMaya waits.",
    "brand": {"voice": "Bold", "visual_identity": "High contrast", "color_palette": {"primary": "#111111"}},
}


@pytest.fixture
async def project_id(client):
    resp = await client.post("/api/projects/", json={"name": "Signal", "bible": BIBLE})
    return resp.json()["id"]


@pytest.fixture
async def scenes(client, project_id):
    resp = await client.post("/api/director/scenes", json={"project_id": project_id})
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
async def shots(client, scenes):
    resp = await client.post(f"/api/director/scenes/{scenes[0]['id']}/shots")
    assert resp.status_code == 201
    return resp.json()


async def _usage(client, project_id):
    resp = await client.get(f"/api/finops/projects/{project_id}/usage")
    return {item["action_type"]: item for item in resp.json()["breakdown"]}


class TestScenes:
    async def test_breakdown_creates_ordered_scenes(self, client, project_id, scenes):
        assert [s["order"] for s in scenes] == [1, 2]
        assert all(s["status"] == "draft" for s in scenes)

        listed = (await client.get(f"/api/director/projects/{project_id}/scenes")).json()
        assert [s["id"] for s in listed] == [s["id"] for s in scenes]

    async def test_breakdown_is_billed_per_scene(self, client, project_id, scenes):
        usage = await _usage(client, project_id)
        assert usage["SCRIPT_ANALYSIS"]["quantity"] == 2
        assert usage["SCRIPT_ANALYSIS"]["cost"] == 0.1

    async def test_breakdown_appends(self, client, project_id, scenes):
        resp = await client.post("/api/director/scenes", json={"project_id": project_id})
        assert [s["order"] for s in resp.json()] == [3, 4]

    async def test_breakdown_without_script(self, client):
        p = (await client.post("/api/projects/", json={"name": "Empty"})).json()
        resp = await client.post("/api/director/scenes", json={"project_id": p["id"]})
        assert resp.status_code == 400

    async def test_breakdown_unknown_project(self, client):
        resp = await client.post("/api/director/scenes", json={"project_id": 999})
        assert resp.status_code == 404

    async def test_manual_scene_and_update(self, client, project_id, scenes):
        resp = await client.post(
            f"/api/director/projects/{project_id}/scenes", json={"title": "Epilogue"}
        )
        assert resp.status_code == 201
        scene = resp.json()
        assert scene["order"] == 3

        resp = await client.patch(f"/api/director/scenes/{scene['id']}", json={"status": "filmed"})
        assert resp.json()["status"] == "filmed"

        resp = await client.patch(f"/api/director/scenes/{scene['id']}", json={"status": "bogus"})
        assert resp.status_code == 422

    async def test_delete_scene(self, client, project_id, scenes):
        assert (await client.delete(f"/api/director/scenes/{scenes[0]['id']}")).status_code == 204
        listed = (await client.get(f"/api/director/projects/{project_id}/scenes")).json()
        assert [s["id"] for s in listed] == [scenes[1]["id"]]
        assert (await client.delete(f"/api/director/scenes/{scenes[0]['id']}")).status_code == 404


class TestShots:
    async def test_shot_list_maps_breakdown(self, shots):
        assert [s["order"] for s in shots] == [1, 2]
        first = shots[0]
        assert first["camera_angle"] == "Wide Shot"
        assert first["movement"] == "Slow Dolly In"
        assert first["lens"] == "35mm, f/2.8"
        assert first["audio_description"] == "Electrical hum"
        assert first["status"] == "planned"
        assert first["image_url"] is None

    async def test_shot_list_is_billed(self, client, project_id, shots):
        usage = await _usage(client, project_id)
        assert usage["SHOT_GENERATION"]["quantity"] == 2
        assert usage["SHOT_GENERATION"]["cost"] == 0.04

    async def test_update_shot(self, client, shots):
        resp = await client.patch(
            f"/api/director/shots/{shots[0]['id']}",
            json={"lighting": "Hard top light", "status": "approved"},
        )
        assert resp.json()["lighting"] == "Hard top light"
        assert resp.json()["status"] == "approved"

    async def test_unknown_scene(self, client):
        assert (await client.get("/api/director/scenes/999/shots")).status_code == 404
        assert (await client.post("/api/director/scenes/999/shots")).status_code == 404


class TestShotImage:
    async def test_requires_approval(self, client, project_id, shots):
        resp = await client.post(f"/api/director/shots/{shots[0]['id']}/image", json={})

        assert resp.status_code == 412
        body = resp.json()
        assert body["requires_approval"] is True
        assert body["estimated_cost"] == 0.04
        assert body["threshold"] == 0.01
        assert "IMAGE_GEN" not in await _usage(client, project_id)

    async def test_approved_generation(self, client, project_id, scenes, shots):
        shot_id = shots[0]["id"]
        resp = await client.post(f"/api/director/shots/{shot_id}/image", json={"force": True})

        assert resp.status_code == 201
        generation = resp.json()
        assert generation["shot_id"] == shot_id
        assert generation["cost"] == 0.04
        assert generation["image_url"].startswith(f"/media/{project_id}/images/shot{shot_id}_")
        assert "Wide Shot, Slow Dolly In." in generation["prompt"]

        listed = (await client.get(f"/api/director/scenes/{scenes[0]['id']}/shots")).json()
        assert listed[0]["image_url"] == generation["image_url"]
        assert listed[0]["status"] == "generated"
        assert (await _usage(client, project_id))["IMAGE_GEN"]["cost"] == 0.04

        image = await client.get(generation["image_url"])
        assert image.status_code == 200
        assert image.headers["content-type"] == "image/png"

    async def test_latest_image_wins(self, client, scenes, shots):
        shot_id = shots[0]["id"]
        await client.post(f"/api/director/shots/{shot_id}/image", json={"force": True})
        second = (await client.post(f"/api/director/shots/{shot_id}/image", json={"force": True})).json()

        listed = (await client.get(f"/api/director/scenes/{scenes[0]['id']}/shots")).json()
        assert listed[0]["image_url"] == second["image_url"]

    async def test_locked_character_in_prompt(self, client, project_id, shots):
        char = (await client.post(
            f"/api/projects/{project_id}/characters/",
            json={"name": "Maya", "description": "red coat", "image_url": "/media/ref.png"},
        )).json()
        await client.post(f"/api/projects/{project_id}/characters/{char['id']}/lock")

        resp = await client.post(f"/api/director/shots/{shots[0]['id']}/image", json={"force": True})

        prompt = resp.json()["prompt"]
        assert "CRITICAL - CHARACTER LOCK:" in prompt
        assert "red coat" in prompt
        assert "Primary #111111" in prompt

    async def test_layout_and_xml_export(self, client, project_id, scenes, shots):
        await client.post(f"/api/director/shots/{shots[1]['id']}/image", json={"force": True})

        layout = (await client.get(f"/api/director/projects/{project_id}/layout")).json()
        assert [len(s["shots"]) for s in layout] == [2, 0]
        assert layout[0]["shots"][1]["image_url"] is not None

        resp = await client.post(f"/api/projects/{project_id}/export-xml")
        assert resp.status_code == 200
        export = resp.json()
        assert export["shot_count"] == 2
        assert export["url"].endswith(".xml")

        xml = await client.get(export["url"])
        assert "<xmeml" in xml.text
        assert "<name>Signal</name>" in xml.text

    async def test_export_unknown_project(self, client):
        assert (await client.post("/api/projects/999/export-xml")).status_code == 404


class TestCharacters:
    async def test_crud(self, client, project_id):
        base = f"/api/projects/{project_id}/characters"
        created = (await client.post(f"{base}/", json={"name": "Maya"})).json()
        assert created["is_locked"] is False

        resp = await client.patch(f"{base}/{created['id']}", json={"description": "red coat"})
        assert resp.json()["description"] == "red coat"

        assert len((await client.get(f"{base}/")).json()) == 1
        assert (await client.delete(f"{base}/{created['id']}")).status_code == 204
        assert (await client.get(f"{base}/{created['id']}")).status_code == 404

    async def test_null_name_rejected(self, client, project_id):
        base = f"/api/projects/{project_id}/characters"
        created = (await client.post(f"{base}/", json={"name": "Maya"})).json()

        resp = await client.patch(f"{base}/{created['id']}", json={"name": None})

        assert resp.status_code == 422
        assert (await client.get(f"{base}/{created['id']}")).json()["name"] == "Maya"

    async def test_character_of_other_project(self, client, project_id):
        other = (await client.post("/api/projects/", json={"name": "Other"})).json()
        char = (await client.post(f"/api/projects/{other['id']}/characters/", json={"name": "Ed"})).json()

        resp = await client.get(f"/api/projects/{project_id}/characters/{char['id']}")
        assert resp.status_code == 404

    async def test_single_lock_per_project(self, client, project_id):
        base = f"/api/projects/{project_id}/characters"
        maya = (await client.post(f"{base}/", json={"name": "Maya"})).json()
        ed = (await client.post(f"{base}/", json={"name": "Ed"})).json()

        await client.post(f"{base}/{maya['id']}/lock")
        resp = await client.post(f"{base}/{ed['id']}/lock")
        assert resp.json()["is_locked"] is True

        locked = (await client.get(f"{base}/locked")).json()
        assert locked["id"] == ed["id"]
        assert (await client.get(f"{base}/{maya['id']}")).json()["is_locked"] is False

        assert (await client.post(f"{base}/unlock")).status_code == 204
        assert (await client.get(f"{base}/locked")).json() is None

    async def test_create_for_missing_project(self, client):
        resp = await client.post("/api/projects/999/characters/", json={"name": "Ghost"})
        assert resp.status_code == 404


class TestStoryboard:
    async def _lock(self, client, project_id):
        base = f"/api/projects/{project_id}/characters"
        char = (await client.post(f"{base}/", json={"name": "Maya", "description": "red coat"})).json()
        await client.post(f"{base}/{char['id']}/lock")
        return char

    async def test_generate_requires_approval(self, client, project_id):
        resp = await client.post(
            "/api/storyboard/generate",
            json={"project_id": project_id, "shot_description": "Maya on the roof"},
        )
        assert resp.status_code == 412
        assert resp.json()["estimated_cost"] == 0.055

    async def test_generate_locked_frame(self, client, project_id, shots):
        await self._lock(client, project_id)

        resp = await client.post(
            "/api/storyboard/generate",
            json={
                "project_id": project_id,
                "shot_description": "Maya on the roof",
                "shot_id": shots[0]["id"],
                "force": True,
            },
        )

        assert resp.status_code == 201
        frame = resp.json()
        assert frame["character_locked"] is True
        assert frame["brand_applied"] is True
        assert frame["cost"] == 0.055
        assert "CHARACTER LOCK (IMMUTABLE):" in frame["prompt"]
        assert "/storyboard_" in frame["image_url"]

    async def test_shot_from_other_project(self, client, project_id, shots):
        other = (await client.post("/api/projects/", json={"name": "Other"})).json()
        resp = await client.post(
            "/api/storyboard/generate",
            json={
                "project_id": other["id"],
                "shot_description": "x",
                "shot_id": shots[0]["id"],
                "force": True,
            },
        )
        assert resp.status_code == 404

    async def test_variations(self, client, project_id):
        resp = await client.post(
            "/api/storyboard/variations",
            json={"project_id": project_id, "shot_description": "Hero", "count": 2},
        )
        prompts = resp.json()["prompts"]
        assert len(prompts) == 2
        assert "Variation 2" in prompts[1]
        assert "BRAND CONSTRAINTS (IMMUTABLE):" in prompts[0]

    async def test_frame_descriptor(self, client, project_id):
        await self._lock(client, project_id)
        resp = await client.get(f"/api/storyboard/{project_id}/frame-descriptor")
        descriptor = resp.json()
        assert descriptor["mood"] == "High contrast"
        assert descriptor["characters"][0]["name"] == "Maya"
        assert descriptor["color_palette"] == {"primary": "#111111"}

    async def test_lock_preview(self, client, project_id):
        body = {"project_id": project_id, "base_prompt": "Maya drinks coffee"}
        assert (await client.post("/api/storyboard/lock-preview", json=body)).status_code == 404

        await self._lock(client, project_id)
        resp = await client.post("/api/storyboard/lock-preview", json=body)

        assert resp.status_code == 200
        assert resp.json()["base_prompt"] == "Maya drinks coffee"
        assert "red coat" in resp.json()["character_reference"]


class TestGenerator:
    async def test_asset_requires_approval(self, client, project_id):
        resp = await client.post(
            "/api/generator/assets", json={"project_id": project_id, "prompt": "A neon sign"}
        )
        assert resp.status_code == 412

    async def test_cheap_model_skips_approval(self, client, project_id):
        resp = await client.post(
            "/api/generator/assets",
            json={"project_id": project_id, "prompt": "A neon sign", "model_id": "stability-ai/sd-turbo"},
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["cost"] == 0.005
        assert body["generation"]["model"] == "stability-ai/sd-turbo"

        ledger = (await client.get(f"/api/finops/projects/{project_id}/ledger")).json()
        assert ledger[0]["action_type"] == "IMAGE_GEN"
        assert ledger[0]["model_id"] == "stability-ai/sd-turbo"

    async def test_unknown_project(self, client):
        resp = await client.post(
            "/api/generator/assets", json={"project_id": 999, "prompt": "x", "force": True}
        )
        assert resp.status_code == 404

    async def test_shot_from_other_project_rejected(self, client, scenes, shots):
        other = (await client.post("/api/projects/", json={"name": "Other"})).json()

        resp = await client.post(
            "/api/generator/assets",
            json={"project_id": other["id"], "shot_id": shots[0]["id"], "prompt": "x", "force": True},
        )

        assert resp.status_code == 404
        assert "does not belong" in resp.json()["detail"]
        listed = (await client.get(f"/api/director/scenes/{scenes[0]['id']}/shots")).json()
        assert listed[0]["image_url"] is None
        assert (await _usage(client, other["id"])) == {}

    async def test_generation_metrics(self, client, project_id):
        await client.post(
            "/api/generator/assets",
            json={"project_id": project_id, "prompt": "x", "force": True},
        )
        services = (await client.get("/api/metrics/generation")).json()["services"]
        image = next(s for s in services if s["service"] == "image_gen")
        assert image["total_calls"] >= 1
