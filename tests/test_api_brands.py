"""
API tests for brands: CRUD, identity extraction, project linking and prompt injection.
"""

from unittest.mock import AsyncMock, patch

import pytest

from filmstudio.models import Brand
from filmstudio.services import brands

BIBLE = {
    "script": "INT. CONTROL ROOM - NIGHT\nMaya watches.",
    "brand": {"voice": "Bold", "visual_identity": "High contrast", "color_palette": {"primary": "#111111"}},
}


@pytest.fixture
async def project_id(client):
    resp = await client.post("/api/projects/", json={"name": "Signal", "bible": BIBLE})
    return resp.json()["id"]


@pytest.fixture
async def brand(client):
    resp = await client.post(
        "/api/brands/",
        json={
            "name": "Northwind",
            "aesthetic": "Muted film stock",
            "brand_voice": "Calm",
            "color_palette": {"primary": "#0B3D91"},
        },
    )
    assert resp.status_code == 201
    return resp.json()


async def _usage(client, project_id):
    resp = await client.get(f"/api/finops/projects/{project_id}/usage")
    return {item["action_type"]: item for item in resp.json()["breakdown"]}


class TestBrandContext:
    def test_full_context(self):
        brand = Brand(
            name="Northwind",
            brand_voice="Calm",
            color_palette={"primary": "#0B3D91"},
            negative_constraints="No neon",
            aesthetic="Muted",
        )
        assert brands.brand_context(brand) == (
            'BRAND: Northwind | VOICE: Calm | PALETTE: {"primary": "#0B3D91"} '
            "| AVOID: No neon | AESTHETIC: Muted"
        )

    def test_empty_parts_skipped(self):
        assert brands.brand_context(Brand(name="Bare")) == "BRAND: Bare"

    def test_parse_identity_requires_object(self):
        with pytest.raises(brands.LLMError):
            brands.parse_identity(None)


class TestBrandCrud:
    async def test_crud(self, client, brand):
        resp = await client.patch(f"/api/brands/{brand['id']}", json={"mission": "Quiet tools"})
        assert resp.json()["mission"] == "Quiet tools"

        assert [b["name"] for b in (await client.get("/api/brands/")).json()] == ["Northwind"]
        assert (await client.delete(f"/api/brands/{brand['id']}")).status_code == 204
        assert (await client.get(f"/api/brands/{brand['id']}")).status_code == 404

    async def test_scoped_to_user(self, client, brand):
        headers = {"X-User-Id": "2"}
        assert (await client.get("/api/brands/", headers=headers)).json() == []
        assert (await client.get(f"/api/brands/{brand['id']}", headers=headers)).status_code == 404

    async def test_null_name_rejected(self, client, brand):
        resp = await client.patch(f"/api/brands/{brand['id']}", json={"name": None})
        assert resp.status_code == 422


class TestBrandLinking:
    async def test_assign_and_unlink(self, client, project_id, brand):
        resp = await client.put(f"/api/brands/projects/{project_id}", json={"brand_id": brand["id"]})
        assert resp.status_code == 200
        assert resp.json()["brand_id"] == brand["id"]

        resp = await client.put(f"/api/brands/projects/{project_id}", json={"brand_id": None})
        assert resp.json()["brand_id"] is None

    async def test_assign_unknown_brand(self, client, project_id):
        resp = await client.put(f"/api/brands/projects/{project_id}", json={"brand_id": 999})
        assert resp.status_code == 404

    async def test_linked_brand_overrides_bible(self, client, project_id, brand):
        await client.put(f"/api/brands/projects/{project_id}", json={"brand_id": brand["id"]})

        descriptor = (await client.get(f"/api/storyboard/{project_id}/frame-descriptor")).json()

        assert descriptor["mood"] == "Muted film stock"
        assert descriptor["color_palette"] == {"primary": "#0B3D91"}

    async def test_deleting_brand_falls_back_to_bible(self, client, project_id, brand):
        await client.put(f"/api/brands/projects/{project_id}", json={"brand_id": brand["id"]})
        await client.delete(f"/api/brands/{brand['id']}")

        project = (await client.get(f"/api/projects/{project_id}")).json()
        assert project["brand_id"] is None
        descriptor = (await client.get(f"/api/storyboard/{project_id}/frame-descriptor")).json()
        assert descriptor["mood"] == "High contrast"

    async def test_directives(self, client, project_id, brand):
        url = f"/api/brands/projects/{project_id}/directives"
        plain = (await client.post(url, json={"prompt": "A hero shot"})).json()
        assert plain == {"prompt": "A hero shot", "brand_applied": False}

        await client.put(f"/api/brands/projects/{project_id}", json={"brand_id": brand["id"]})
        wrapped = (await client.post(url, json={"prompt": "A hero shot"})).json()

        assert wrapped["brand_applied"] is True
        assert wrapped["prompt"].startswith("### BRAND_IDENTITY ###\nBRAND: Northwind")
        assert "### ORIGINAL_PROMPT ###\nA hero shot" in wrapped["prompt"]


class TestIngestion:
    async def test_mock_ingestion_fills_identity(self, client, project_id, brand):
        resp = await client.post(
            f"/api/brands/{brand['id']}/ingest",
            json={"source_url": "https://example.com/guide.pdf", "project_id": project_id},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["color_palette"]["accent"] == "#FC3D21"
        assert body["target_customer"].startswith("Urban professionals")
        assert body["aesthetic"] == "Muted film stock"
        assert (await _usage(client, project_id))["BRAND_INGESTION"]["cost"] == 0.05

    async def test_billed_to_linked_project(self, client, project_id, brand):
        await client.put(f"/api/brands/projects/{project_id}", json={"brand_id": brand["id"]})

        await client.post(f"/api/brands/{brand['id']}/ingest", json={"source_url": "https://x.test"})

        assert "BRAND_INGESTION" in await _usage(client, project_id)

    async def test_unknown_billing_project(self, client, brand):
        resp = await client.post(
            f"/api/brands/{brand['id']}/ingest",
            json={"source_url": "https://x.test", "project_id": 999},
        )
        assert resp.status_code == 404

    async def test_unparsable_extraction(self, client, brand, monkeypatch):
        monkeypatch.setattr(brands.settings, "USE_MOCK_API", False)
        with patch.object(brands, "llm_json_call", AsyncMock(return_value=None)):
            resp = await client.post(
                f"/api/brands/{brand['id']}/ingest", json={"source_url": "https://x.test"}
            )
        assert resp.status_code == 502
