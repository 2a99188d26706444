"""HTTP surface of the vaccination engine."""

from __future__ import annotations

import asyncio
import uuid
from typing import Any

import pytest
from httpx import AsyncClient

from vaxcycle.api import deps
from vaxcycle.core.config import get_settings
from vaxcycle.core.errors import ConcurrencyConflict
from vaxcycle.db.protocol_store import ProtocolStore
from vaxcycle.db.session import get_sessionmaker
from vaxcycle.main import app

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/vaccinations"


def _payload(context: dict[str, Any], **overrides: Any) -> dict[str, Any]:
    payload = {
        "animal_id": str(context["rex"]),
        "vaccine_id": str(context["v10"]),
        "lab": "Zoetis",
        "batch": "VX-001",
        "vet": "Dr. Almeida",
        "amount_paid": "95.00",
        "doses_required": 3,
        "interval_days": 30,
        "requires_annual_booster": True,
    }
    payload.update(overrides)
    return payload


async def test_dose_registration_flow(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]

    first = await client.post(f"{BASE}/doses", json=_payload(app_context))
    assert first.status_code == 201, first.text
    body = first.json()
    assert body["status"] == "in_progress"
    assert body["next_dose_date"] == "2024-03-31"
    assert body["next_cycle_reminder_date"] is None
    assert body["animal"]["name"] == "Rex"
    assert body["vaccine"]["name"] == "V10"
    assert len(body["doses"]) == 1
    assert body["doses"][0]["attending_vet"] == "Dr. Almeida"
    assert first.headers.get("X-Request-ID")

    app_context["clock"].advance(days=30)
    follow_up = _payload(app_context)
    del follow_up["vet"]
    follow_up["attending_vet"] = "Dr. Reis"
    second = await client.post(f"{BASE}/doses", json=follow_up)
    assert second.status_code == 201
    assert second.json()["id"] == body["id"]
    assert second.json()["next_dose_date"] == "2024-04-30"
    assert [dose["attending_vet"] for dose in second.json()["doses"]] == [
        "Dr. Almeida",
        "Dr. Reis",
    ]


async def test_completed_cycle_returns_bad_request(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    payload = _payload(
        app_context,
        vaccine_id=str(app_context["rabies"]),
        doses_required=1,
        interval_days=None,
        requires_annual_booster=False,
    )
    created = await client.post(f"{BASE}/doses", json=payload)
    assert created.status_code == 201
    assert created.json()["status"] == "complete"

    repeated = await client.post(f"{BASE}/doses", json=payload)
    assert repeated.status_code == 400
    assert "Rabies" in repeated.json()["detail"]
    assert "Rex" in repeated.json()["detail"]


async def test_unknown_animal_returns_not_found(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.post(
        f"{BASE}/doses", json=_payload(app_context, animal_id=str(uuid.uuid4()))
    )
    assert response.status_code == 404

    history = await client.get(f"{BASE}/animals/{uuid.uuid4()}/history")
    assert history.status_code == 404


async def test_payload_validation(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    missing_interval = await client.post(
        f"{BASE}/doses", json=_payload(app_context, interval_days=None)
    )
    assert missing_interval.status_code == 400
    assert "interval_days" in missing_interval.json()["detail"]

    negative = await client.post(
        f"{BASE}/doses", json=_payload(app_context, amount_paid="-1")
    )
    assert negative.status_code == 422


async def test_read_views(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    await client.post(f"{BASE}/doses", json=_payload(app_context, interval_days=5))
    await client.post(
        f"{BASE}/doses",
        json=_payload(
            app_context,
            animal_id=str(app_context["mia"]),
            doses_required=1,
            interval_days=None,
        ),
    )

    history = await client.get(f"{BASE}/animals/{app_context['rex']}/history")
    assert history.status_code == 200
    assert len(history.json()) == 1
    assert len(history.json()[0]["doses"]) == 1

    alerts = await client.get(f"{BASE}/alerts")
    assert [item["next_dose_date"] for item in alerts.json()] == ["2024-03-06"]

    schedule = await client.get(f"{BASE}/schedule")
    assert [item["next_dose_date"] for item in schedule.json()] == ["2024-03-06"]

    kpis = await client.get(f"{BASE}/kpis")
    assert kpis.json() == {
        "doses_applied": 2,
        "scheduled": 1,
        "overdue": 0,
        "completed": 1,
    }

    recent = await client.get(f"{BASE}/doses/recent", params={"limit": 1})
    assert recent.status_code == 200
    assert len(recent.json()) == 1
    assert recent.json()[0]["protocol"]["animal"]["name"] in {"Rex", "Mia"}


async def test_protocol_admin_edits(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    created = await client.post(f"{BASE}/doses", json=_payload(app_context))
    protocol_id = created.json()["id"]

    overdue = await client.patch(
        f"{BASE}/protocols/{protocol_id}/status", json={"status": "overdue"}
    )
    assert overdue.status_code == 200
    assert overdue.json()["status"] == "overdue"

    rescheduled = await client.patch(
        f"{BASE}/protocols/{protocol_id}", json={"interval_days": 10}
    )
    assert rescheduled.status_code == 200
    assert rescheduled.json()["status"] == "in_progress"
    assert rescheduled.json()["next_dose_date"] == "2024-03-11"

    shortened = await client.patch(
        f"{BASE}/protocols/{protocol_id}", json={"doses_required": 1}
    )
    assert shortened.status_code == 200
    assert shortened.json()["status"] == "complete"
    assert shortened.json()["next_dose_date"] is None
    assert shortened.json()["next_cycle_reminder_date"] == "2025-03-01"

    invalid = await client.patch(
        f"{BASE}/protocols/{protocol_id}/status", json={"status": "in_progress"}
    )
    assert invalid.status_code == 400

    missing = await client.patch(
        f"{BASE}/protocols/{uuid.uuid4()}/status", json={"status": "overdue"}
    )
    assert missing.status_code == 404


async def test_persistent_conflict_returns_409(
    app_context: dict[str, Any], db_url: str
) -> None:
    class ConflictingStore(ProtocolStore):
        async def find_active_protocol(self, tx, animal_id, vaccine_id):
            raise ConcurrencyConflict("simulated serialization failure")

    app.dependency_overrides[deps.get_store] = lambda: ConflictingStore(
        get_sessionmaker(db_url)
    )
    client: AsyncClient = app_context["client"]
    response = await client.post(f"{BASE}/doses", json=_payload(app_context))
    assert response.status_code == 409


async def test_slow_store_returns_gateway_timeout(
    app_context: dict[str, Any], db_url: str
) -> None:
    class SlowStore(ProtocolStore):
        async def find_animal(self, tx, animal_id):
            await asyncio.sleep(1)
            return await super().find_animal(tx, animal_id)

    app.dependency_overrides[deps.get_store] = lambda: SlowStore(
        get_sessionmaker(db_url)
    )
    app.dependency_overrides[deps.get_app_settings] = lambda: get_settings().model_copy(
        update={"request_timeout_seconds": 0.05}
    )
    client: AsyncClient = app_context["client"]
    response = await client.post(f"{BASE}/doses", json=_payload(app_context))
    assert response.status_code == 504


async def test_follow_up_dose_ignores_cycle_fields(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    created = await client.post(
        f"{BASE}/doses", json=_payload(app_context, doses_required=2)
    )
    assert created.status_code == 201

    app_context["clock"].advance(days=30)
    follow_up = await client.post(
        f"{BASE}/doses",
        json=_payload(app_context, doses_required=3, interval_days=None),
    )
    assert follow_up.status_code == 201, follow_up.text
    body = follow_up.json()
    assert body["id"] == created.json()["id"]
    assert body["doses_required"] == 2
    assert body["status"] == "complete"
    assert len(body["doses"]) == 2


async def test_admin_edits_reject_archived_and_intervalless_cycles(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]
    booster = _payload(
        app_context,
        vaccine_id=str(app_context["rabies"]),
        doses_required=1,
        interval_days=None,
    )
    original = await client.post(f"{BASE}/doses", json=booster)
    assert original.status_code == 201
    original_id = original.json()["id"]

    app_context["clock"].advance(days=365)
    renewed = await client.post(f"{BASE}/doses", json=booster)
    assert renewed.status_code == 201
    assert renewed.json()["id"] != original_id

    archived_edit = await client.patch(
        f"{BASE}/protocols/{original_id}", json={"doses_required": 2, "interval_days": 7}
    )
    assert archived_edit.status_code == 400
    assert "Archived" in archived_edit.json()["detail"]

    no_interval = await client.patch(
        f"{BASE}/protocols/{renewed.json()['id']}", json={"doses_required": 3}
    )
    assert no_interval.status_code == 400
    assert "interval_days" in no_interval.json()["detail"]

    unchanged = await client.get(f"{BASE}/animals/{app_context['rex']}/history")
    current = [item for item in unchanged.json() if item["active"]]
    assert [item["doses_required"] for item in current] == [1]


async def test_read_view_conflict_returns_409(
    app_context: dict[str, Any], db_url: str
) -> None:
    class BusyStore(ProtocolStore):
        async def count_doses(self, tx, protocol_id=None):
            raise ConcurrencyConflict("database is locked")

    app.dependency_overrides[deps.get_store] = lambda: BusyStore(
        get_sessionmaker(db_url)
    )
    client: AsyncClient = app_context["client"]
    response = await client.get(f"{BASE}/kpis")
    assert response.status_code == 409
