"""Animal and vaccine catalog endpoints."""

from __future__ import annotations

import uuid
from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def test_animal_catalog(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]

    created = await client.post(
        "/api/v1/animals",
        json={"name": "Bolt", "species": "dog", "rescued_on": "2024-01-15"},
    )
    assert created.status_code == 201
    animal_id = created.json()["id"]

    listing = await client.get("/api/v1/animals")
    assert [animal["name"] for animal in listing.json()] == ["Bolt", "Mia", "Rex"]

    fetched = await client.get(f"/api/v1/animals/{animal_id}")
    assert fetched.status_code == 200
    assert fetched.json()["rescued_on"] == "2024-01-15"

    missing = await client.get(f"/api/v1/animals/{uuid.uuid4()}")
    assert missing.status_code == 404

    invalid = await client.post("/api/v1/animals", json={"name": ""})
    assert invalid.status_code == 422


async def test_vaccine_catalog(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]

    created = await client.post(
        "/api/v1/vaccines", json={"name": "Leptospirosis", "manufacturer": "MSD"}
    )
    assert created.status_code == 201
    vaccine_id = created.json()["id"]

    updated = await client.patch(
        f"/api/v1/vaccines/{vaccine_id}", json={"description": "Annual booster"}
    )
    assert updated.status_code == 200
    assert updated.json()["description"] == "Annual booster"
    assert updated.json()["manufacturer"] == "MSD"

    listing = await client.get("/api/v1/vaccines")
    assert "Leptospirosis" in [vaccine["name"] for vaccine in listing.json()]

    missing = await client.patch(
        f"/api/v1/vaccines/{uuid.uuid4()}", json={"name": "Ghost"}
    )
    assert missing.status_code == 404
