"""
Unit tests for warranty certificates
"""
import pytest
from datetime import date, datetime

from conftest import FakeChatSession
from cardroid.services.warranty import WARRANTY_CAPTION, WarrantyService, build_buyer


@pytest.mark.unit
def test_warranty_runs_one_calendar_year():
    buyer = build_buyer("51987654321", "Radio 9\"", date(2025, 3, 15), plate="ABC-123")

    assert buyer.expiration_date == date(2026, 3, 15)
    assert buyer.to_document()["fechaExpiracion"] == datetime(2026, 3, 15)


@pytest.mark.unit
def test_blank_plate_is_stored_as_missing():
    assert build_buyer("51987654321", "Alarma", date(2025, 3, 15), plate="").plate is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_stores_buyer_and_sends_certificate(fake_db, fake_session):
    buyer, sent = await WarrantyService(fake_session).create("51987654321", "GPS", date(2025, 1, 10))

    assert sent is True
    assert buyer.id == "fake_id_1"
    stored = fake_db["compradores"].documents[0]
    assert stored["numero"] == "51987654321"
    assert stored["producto"] == "GPS"
    assert stored["fechaInicio"] == datetime(2025, 1, 10)

    _, media, caption = fake_session.media[0]
    assert caption == WARRANTY_CAPTION
    assert media.mimetype == "application/pdf"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_keeps_buyer_when_send_fails(fake_db):
    session = FakeChatSession(failing={"51987654321"})

    _, sent = await WarrantyService(session).create("51987654321", "GPS", date(2025, 1, 10))

    assert sent is False
    assert len(fake_db["compradores"].documents) == 1
