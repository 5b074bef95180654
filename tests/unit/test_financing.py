"""
Unit tests for financing plans

Tests cover:
- Installment schedule calculation
- Plan creation with best-effort contract delivery
- Marking installments paid (isolation, idempotency, range checks)
- Search by number or plate prefix
"""
import pytest
from datetime import date, datetime

from conftest import FakeChatSession
from cardroid.exceptions import InstallmentOutOfRangeError, NotFoundError, ValidationError
from cardroid.models import Financing, FinancingCreate
from cardroid.services.financing import (
    CONTRACT_CAPTION,
    CONTRACT_FILENAME,
    FinancingService,
    build_financing,
    build_installment_schedule,
    mark_paid_at,
    payment_receipt_message,
)
from cardroid.utils.dates import FixedClock


# ============================================================
# Fixtures
# ============================================================

def _plan(phone="51987654321", plate="ABC-123", count=2) -> Financing:
    data = FinancingCreate(
        customer_name="Juan Pérez",
        phone=phone,
        id_document="45678912",
        plate=plate,
        total_amount=1000,
        down_payment=350,
        installment_count=count,
    )
    return build_financing(data, date(2025, 1, 1))


@pytest.fixture
def seeded_db(fake_db):
    fake_db["financiamientos"]._store(_plan().to_document())
    return fake_db


@pytest.fixture
def service(fake_session):
    return FinancingService(fake_session, FixedClock(date(2025, 1, 1)))


# ============================================================
# Schedule
# ============================================================

@pytest.mark.unit
def test_schedule_splits_balance_every_thirty_days():
    schedule = build_installment_schedule(1000, 350, 2, date(2025, 1, 1))

    assert [c.amount for c in schedule] == [325.0, 325.0]
    assert [c.due_date for c in schedule] == [date(2025, 1, 31), date(2025, 3, 2)]
    assert all(not c.paid for c in schedule)
    assert len({c.installment_id for c in schedule}) == 2


@pytest.mark.unit
def test_schedule_rounds_to_cents():
    schedule = build_installment_schedule(1000, 0, 3, date(2025, 1, 1))
    assert [c.amount for c in schedule] == [333.33, 333.33, 333.33]
    assert schedule[-1].due_date == date(2025, 4, 1)


@pytest.mark.unit
def test_schedule_rejects_down_payment_above_total():
    with pytest.raises(ValidationError):
        build_installment_schedule(300, 350, 2, date(2025, 1, 1))


@pytest.mark.unit
def test_build_financing_applies_defaults():
    data = FinancingCreate(
        customer_name="Ana", phone="51911111111", id_document="12345678", plate="XYZ-999", total_amount=1000
    )
    financing = build_financing(data, date(2025, 1, 1))

    assert financing.down_payment == 350
    assert len(financing.installments) == 2
    assert financing.end_date == date(2025, 3, 2)


@pytest.mark.unit
def test_financing_document_uses_store_keys():
    doc = _plan().to_document()

    assert doc["numero"] == "51987654321"
    assert doc["montoTotal"] == 1000
    assert doc["cuotaInicial"] == 350
    assert doc["fechaInicio"] == datetime(2025, 1, 1)
    assert doc["fechaFin"] == datetime(2025, 3, 2)
    assert doc["cuotas"][0]["vencimiento"] == datetime(2025, 1, 31)
    assert doc["cuotas"][0]["pagada"] is False
    assert "cuotaId" in doc["cuotas"][0]


@pytest.mark.unit
def test_financing_reads_legacy_string_dates():
    doc = {
        "_id": "abc",
        "nombre": "Luis",
        "numero": "51900000000",
        "dni": "11111111",
        "placa": "AAA-111",
        "montoTotal": 800,
        "cuotaInicial": 350,
        "cuotas": [{"cuotaId": "c1", "monto": 225, "vencimiento": "31/01/2025", "pagada": False}],
        "fechaInicio": "01/01/2025",
        "fechaFin": "31/01/2025",
    }
    financing = Financing.from_document(doc)

    assert financing.start_date == date(2025, 1, 1)
    assert financing.installments[0].due_date == date(2025, 1, 31)


# ============================================================
# Creation
# ============================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_stores_plan_and_sends_contract(fake_db, service, fake_session):
    data = FinancingCreate(
        customer_name="Juan Pérez",
        phone="51987654321",
        id_document="45678912",
        plate="ABC-123",
        total_amount=1000,
    )

    financing, sent = await service.create(data)

    assert sent is True
    assert financing.id == "fake_id_1"
    stored = fake_db["financiamientos"].inserted[0]["document"]
    assert stored["fechaInicio"] == datetime(2025, 1, 1)
    assert [c["monto"] for c in stored["cuotas"]] == [325.0, 325.0]

    chat_id, media, caption = fake_session.media[0]
    assert chat_id == "51987654321@c.us"
    assert caption == CONTRACT_CAPTION
    assert media.filename == CONTRACT_FILENAME
    assert media.mimetype == "application/pdf"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_keeps_plan_when_contract_send_fails(fake_db):
    session = FakeChatSession(failing={"51987654321"})
    service = FinancingService(session, FixedClock(date(2025, 1, 1)))
    data = FinancingCreate(
        customer_name="Juan", phone="51987654321", id_document="45678912", plate="ABC-123", total_amount=1000
    )

    _, sent = await service.create(data)

    assert sent is False
    assert len(fake_db["financiamientos"].documents) == 1


# ============================================================
# Mark paid
# ============================================================

@pytest.mark.unit
def test_mark_paid_at_returns_copy():
    installments = _plan().installments
    updated = mark_paid_at(installments, 1)

    assert updated[1].paid is True
    assert installments[1].paid is False
    assert updated[0] == installments[0]


@pytest.mark.unit
def test_mark_paid_at_rejects_out_of_range():
    with pytest.raises(InstallmentOutOfRangeError):
        mark_paid_at(_plan().installments, 5)
    with pytest.raises(InstallmentOutOfRangeError):
        mark_paid_at(_plan().installments, -1)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_mark_paid_changes_only_target_installment(seeded_db, service, fake_session):
    before = [dict(c) for c in seeded_db["financiamientos"].documents[0]["cuotas"]]

    financing, notified = await service.mark_paid("51987654321", index=0)

    after = seeded_db["financiamientos"].documents[0]["cuotas"]
    assert notified is True
    assert after[0]["pagada"] is True
    assert after[1] == before[1]
    assert after[0]["monto"] == before[0]["monto"]
    assert after[0]["vencimiento"] == before[0]["vencimiento"]
    assert financing.installments[0].paid is True

    _, text = fake_session.texts[-1]
    assert text.startswith("¡Gracias por tu pago!")
    assert "Cuota 2: S/ 325.00, vence el 02/03/2025" in text


@pytest.mark.unit
@pytest.mark.asyncio
async def test_mark_paid_is_idempotent(seeded_db, service):
    await service.mark_paid("51987654321", index=0)
    first = [dict(c) for c in seeded_db["financiamientos"].documents[0]["cuotas"]]

    await service.mark_paid("51987654321", index=0)
    second = seeded_db["financiamientos"].documents[0]["cuotas"]

    assert first == second


@pytest.mark.unit
@pytest.mark.asyncio
async def test_mark_paid_by_installment_id(seeded_db, service, fake_session):
    installment_id = seeded_db["financiamientos"].documents[0]["cuotas"][1]["cuotaId"]

    await service.mark_paid("51987654321", installment_id=installment_id)
    financing, _ = await service.mark_paid("51987654321", index=0)

    cuotas = seeded_db["financiamientos"].documents[0]["cuotas"]
    assert [c["pagada"] for c in cuotas] == [True, True]
    assert financing.pending_installments() == []
    assert fake_session.texts[-1][1].endswith("Has completado todos tus pagos. ¡Felicitaciones!")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_mark_paid_out_of_range_index_is_rejected(seeded_db, service, fake_session):
    with pytest.raises(InstallmentOutOfRangeError) as exc_info:
        await service.mark_paid("51987654321", index=5)

    assert exc_info.value.status_code == 400
    assert seeded_db["financiamientos"].updated == []
    assert fake_session.texts == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_mark_paid_unknown_number(fake_db, service):
    with pytest.raises(NotFoundError):
        await service.mark_paid("51900000000", index=0)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_mark_paid_unknown_installment_id(seeded_db, service):
    with pytest.raises(NotFoundError):
        await service.mark_paid("51987654321", installment_id="does-not-exist")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_mark_paid_on_plan_without_installment_ids(fake_db, service, fake_session):
    fake_db["financiamientos"]._store({
        "nombre": "Luis",
        "numero": "51911112222",
        "dni": "11111111",
        "placa": "AAA-111",
        "montoTotal": 1000,
        "cuotaInicial": 350,
        "cuotas": [
            {"monto": 325, "vencimiento": "31/01/2025", "pagada": False},
            {"monto": 325, "vencimiento": "02/03/2025", "pagada": False},
        ],
        "fechaInicio": "01/01/2025",
        "fechaFin": "02/03/2025",
    })

    financing, notified = await service.mark_paid("51911112222", index=0)

    cuotas = fake_db["financiamientos"].documents[0]["cuotas"]
    assert notified is True
    assert cuotas[0] == {"monto": 325, "vencimiento": "31/01/2025", "pagada": True}
    assert cuotas[1]["pagada"] is False
    assert [c.paid for c in financing.installments] == [True, False]
    assert "Cuota 2: S/ 325.00, vence el 02/03/2025" in fake_session.texts[-1][1]


@pytest.mark.unit
def test_receipt_lists_pending_with_real_positions():
    financing = _plan(count=3)
    financing.installments = mark_paid_at(financing.installments, 1)

    text = payment_receipt_message(financing)

    assert "Cuota 1: S/ 216.67" in text
    assert "Cuota 3: S/ 216.67" in text
    assert "Cuota 2:" not in text


# ============================================================
# Search
# ============================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_search_by_number_or_plate_prefix(fake_db, service):
    fake_db["financiamientos"]._store(_plan("51987654321", "ABC-123").to_document())
    fake_db["financiamientos"]._store(_plan("51911111111", "XYZ-999").to_document())

    by_number = await service.search("5198")
    by_plate = await service.search("xyz")

    assert [f.phone for f in by_number] == ["51987654321"]
    assert [f.plate for f in by_plate] == ["XYZ-999"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_search_treats_term_literally(fake_db, service):
    fake_db["financiamientos"]._store(_plan().to_document())

    with pytest.raises(NotFoundError):
        await service.search("A.C")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_search_requires_term(fake_db, service):
    with pytest.raises(ValidationError):
        await service.search("   ")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_search_skips_plans_with_malformed_dates(fake_db, service):
    broken = _plan("51987654321", "ABC-123").to_document()
    broken["cuotas"][0]["vencimiento"] = "31/02/2025"
    fake_db["financiamientos"]._store(broken)
    fake_db["financiamientos"]._store(_plan("51987650000", "ABD-456").to_document())

    results = await service.search("5198765")

    assert [f.phone for f in results] == ["51987650000"]
