"""Tests for pipeline stage moves and the Kanban board."""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from freelance_os.db.enums import PipelineStage
from freelance_os.db.models import Invoice, PipelineItem
from freelance_os.services import pipeline_service


def _item(db, user, stage=PipelineStage.LEAD, value: str | None = "2500", **kwargs) -> PipelineItem:
    item = PipelineItem(
        user_id=user.id,
        stage=stage.value,
        estimated_value=Decimal(value) if value is not None else None,
        priority="high",
        notes="Website redesign",
        follow_up_date=date(2025, 4, 1),
        **kwargs,
    )
    db.add(item)
    db.commit()
    return item


# =============================================================================
# Stage Moves
# =============================================================================

def test_stage_move_preserves_other_fields(db, test_user):
    item = _item(db, test_user)

    result = pipeline_service.update_stage(db, item, PipelineStage.CONTACTED)

    assert result.changed is True
    assert result.invoice is None
    db.refresh(item)
    assert item.stage == "contacted"
    assert item.priority == "high"
    assert item.notes == "Website redesign"
    assert item.follow_up_date == date(2025, 4, 1)
    assert item.estimated_value == Decimal("2500")


def test_same_stage_is_noop(db, test_user):
    item = _item(db, test_user, stage=PipelineStage.NEGOTIATION)

    with patch.object(db, "commit", side_effect=AssertionError("no write expected")):
        result = pipeline_service.update_stage(db, item, "negotiation")

    assert result.changed is False
    assert result.item is item


def test_unknown_stage_rejected(db, test_user):
    item = _item(db, test_user)
    with pytest.raises(ValueError):
        pipeline_service.update_stage(db, item, "archived")


def test_won_creates_invoice_once(db, test_user):
    item = _item(db, test_user)

    result = pipeline_service.update_stage(db, item, PipelineStage.WON)
    assert result.invoice is not None
    assert result.invoice.amount == Decimal("2500")
    assert result.invoice.pipeline_id == item.id

    pipeline_service.update_stage(db, item, PipelineStage.NEGOTIATION)
    again = pipeline_service.update_stage(db, item, PipelineStage.WON)

    assert again.changed is True
    assert again.invoice is None
    assert db.query(Invoice).filter(Invoice.pipeline_id == item.id).count() == 1


def test_won_without_value_creates_no_invoice(db, test_user):
    item = _item(db, test_user, value=None)

    result = pipeline_service.update_stage(db, item, PipelineStage.WON)

    assert result.invoice is None
    assert db.query(Invoice).filter(Invoice.pipeline_id == item.id).count() == 0


# =============================================================================
# API
# =============================================================================

@pytest.mark.asyncio
async def test_board_groups_items_by_stage(authed_client):
    client = (await authed_client.post("/clients", json={"first_name": "Grace"})).json()
    await authed_client.post(
        "/pipeline",
        json={"client_id": client["id"], "estimated_value": "1.500,00"},
    )
    await authed_client.post(
        "/pipeline",
        json={"client_id": client["id"], "stage": "negotiation", "estimated_value": 800},
    )

    response = await authed_client.get("/pipeline/board")
    assert response.status_code == 200
    columns = {c["stage"]: c for c in response.json()["columns"]}

    assert list(columns) == [s.value for s in PipelineStage]
    assert len(columns["lead"]["items"]) == 1
    assert Decimal(columns["lead"]["total_value"]) == Decimal("1500")
    assert columns["lead"]["items"][0]["client"]["full_name"] == "Grace"
    assert len(columns["negotiation"]["items"]) == 1


@pytest.mark.asyncio
async def test_drag_to_won_returns_invoice(authed_client):
    created = (await authed_client.post("/pipeline", json={"estimated_value": 1200})).json()
    item_id = created["item"]["id"]

    response = await authed_client.patch(f"/pipeline/{item_id}/stage", json={"stage": "won"})
    assert response.status_code == 200
    data = response.json()
    assert data["changed"] is True
    assert data["item"]["stage"] == "won"
    assert data["invoice_id"] is not None

    invoice = (await authed_client.get(f"/invoices/{data['invoice_id']}")).json()
    assert Decimal(invoice["amount"]) == Decimal("1200")

    # Paid totals roll up onto the pipeline item
    await authed_client.post(f"/invoices/{data['invoice_id']}/payments", json={"amount": 200})
    item = (await authed_client.get(f"/pipeline/{item_id}")).json()
    assert Decimal(item["total_paid"]) == Decimal("200")
    assert Decimal(item["remaining"]) == Decimal("1000")


@pytest.mark.asyncio
async def test_drag_to_same_stage_reports_unchanged(authed_client):
    created = (await authed_client.post("/pipeline", json={})).json()
    item_id = created["item"]["id"]

    response = await authed_client.patch(f"/pipeline/{item_id}/stage", json={"stage": "lead"})
    assert response.status_code == 200
    assert response.json()["changed"] is False


@pytest.mark.asyncio
async def test_foreign_client_rejected(authed_client):
    response = await authed_client.post(
        "/pipeline",
        json={"client_id": "00000000-0000-0000-0000-000000000001"},
    )
    assert response.status_code == 400
