"""
API tests for projects, the Project Bible and the script writer routes.
"""


async def _create(client, name="Launch Spot", bible=None, user_id=None):
    headers = {"X-User-Id": str(user_id)} if user_id else {}
    resp = await client.post("/api/projects/", json={"name": name, "bible": bible}, headers=headers)
    assert resp.status_code == 201
    return resp.json()


class TestHealth:
    async def test_root_and_health(self, client):
        assert (await client.get("/")).json()["mock_mode"] is True
        health = (await client.get("/health")).json()
        assert health["status"] == "healthy"
        assert health["storage_backend"] == "sql"

    async def test_dev_mode(self, client):
        resp = await client.get("/api/system/dev-mode")
        assert resp.json() == {"mock_mode": True, "storage_backend": "sql"}


class TestProjects:
    async def test_create_and_get(self, client):
        created = await _create(client, bible={"brief": "Coffee ad"})

        assert created["user_id"] == 1
        assert created["is_script_locked"] is False

        resp = await client.get(f"/api/projects/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["bible"] == {"brief": "Coffee ad"}

    async def test_list_scoped_to_user(self, client):
        await _create(client, "Mine")
        await _create(client, "Theirs", user_id=2)

        resp = await client.get("/api/projects/", headers={"X-User-Id": "2"})
        assert [p["name"] for p in resp.json()] == ["Theirs"]

    async def test_rename(self, client):
        p = await _create(client)
        resp = await client.patch(f"/api/projects/{p['id']}", json={"name": "Director's Cut"})
        assert resp.json()["name"] == "Director's Cut"

    async def test_empty_name_rejected(self, client):
        resp = await client.post("/api/projects/", json={"name": ""})
        assert resp.status_code == 422

    async def test_delete(self, client):
        p = await _create(client)
        assert (await client.delete(f"/api/projects/{p['id']}")).status_code == 204
        assert (await client.get(f"/api/projects/{p['id']}")).status_code == 404
        assert (await client.delete(f"/api/projects/{p['id']}")).status_code == 404

    async def test_bible_merge(self, client):
        p = await _create(client, bible={"brief": "Coffee", "style": "commercial"})

        resp = await client.patch(
            f"/api/projects/{p['id']}/bible", json={"bible": {"brand": {"voice": "Warm"}}}
        )

        assert resp.status_code == 200
        bible = (await client.get(f"/api/projects/{p['id']}/bible")).json()
        assert bible == {"brief": "Coffee", "style": "commercial", "brand": {"voice": "Warm"}}

    async def test_missing_project(self, client):
        assert (await client.get("/api/projects/999")).status_code == 404
        assert (await client.get("/api/projects/999/bible")).status_code == 404


class TestScriptWriter:
    async def test_synopsis_then_script(self, client):
        p = await _create(client)

        resp = await client.post(
            "/api/script/synopsis", json={"project_id": p["id"], "brief": "A coffee ad"}
        )
        assert resp.status_code == 200
        assert "A coffee ad" in resp.json()["content"]

        resp = await client.post("/api/script/generate", json={"project_id": p["id"]})
        assert resp.status_code == 200
        script = resp.json()["content"]

        bible = (await client.get(f"/api/projects/{p['id']}/bible")).json()
        assert bible["brief"] == "A coffee ad"
        assert bible["script"] == script

    async def test_script_needs_a_source(self, client):
        p = await _create(client)
        resp = await client.post("/api/script/generate", json={"project_id": p["id"]})
        assert resp.status_code == 400

    async def test_locked_script_rejects_writes(self, client):
        p = await _create(client, bible={"script": "FADE IN."})
        resp = await client.post(f"/api/projects/{p['id']}/script-lock", json={"locked": True})
        assert resp.json()["is_script_locked"] is True

        gen = await client.post("/api/script/generate", json={"project_id": p["id"], "brief": "x"})
        refine = await client.post("/api/script/refine", json={"project_id": p["id"], "notes": "more"})

        assert gen.status_code == 409
        assert refine.status_code == 409

    async def test_refine_uses_stored_script(self, client):
        p = await _create(client, bible={"script": "FADE IN."})

        resp = await client.post("/api/script/refine", json={"project_id": p["id"], "notes": "add rain"})

        assert resp.json()["content"] == "FADE IN.\n\n[REVISED: add rain]"

    async def test_refine_without_script(self, client):
        p = await _create(client)
        resp = await client.post("/api/script/refine", json={"project_id": p["id"], "notes": "x"})
        assert resp.status_code == 400

    async def test_visual_style(self, client):
        p = await _create(client)
        assert (await client.post("/api/script/visual-style", json={"project_id": p["id"]})).status_code == 400

        await client.patch(f"/api/projects/{p['id']}/bible", json={"bible": {"script": "INT. ROOM"}})
        resp = await client.post("/api/script/visual-style", json={"project_id": p["id"]})

        assert resp.status_code == 200
        bible = (await client.get(f"/api/projects/{p['id']}/bible")).json()
        assert bible["visual_style"] == resp.json()["content"]

    async def test_writer_calls_are_billed(self, client):
        p = await _create(client)
        await client.post("/api/script/synopsis", json={"project_id": p["id"], "brief": "A"})
        await client.post("/api/script/generate", json={"project_id": p["id"]})

        usage = (await client.get(f"/api/finops/projects/{p['id']}/usage")).json()

        actions = {item["action_type"] for item in usage["breakdown"]}
        assert actions == {"SYNOPSIS_GENERATION", "SCRIPT_GENERATION"}
        assert usage["total_cost"] == 0.1

    async def test_unknown_project(self, client):
        resp = await client.post("/api/script/synopsis", json={"project_id": 404, "brief": "x"})
        assert resp.status_code == 404
