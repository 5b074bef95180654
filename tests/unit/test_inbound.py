"""
Unit tests for inbound message classification and handling
"""
import pytest

from cardroid.adapters.whatsapp_session import InboundMessage
from cardroid.models import InteractionType
from cardroid.services.dispatcher import BroadcastDispatcher, BroadcastQueue
from cardroid.services.inbound import InboundMessageHandler, classify_message
from cardroid.services.promotions import INITIAL_OFFER_MESSAGE, PROMOTIONS, queue_initial_offers


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def handler(fake_session, no_sleep):
    return InboundMessageHandler(BroadcastDispatcher(fake_session, sleep=no_sleep))


def _message(text, phone="51987654321"):
    return InboundMessage(phone=phone, chat_id=f"{phone}@s.whatsapp.net", text=text)


# ============================================================
# Classification
# ============================================================

@pytest.mark.unit
@pytest.mark.parametrize(
    "text,has_offer,expected",
    [
        ("Oferta", False, InteractionType.OFFER_REQUEST),
        ("  OFERTA ", True, InteractionType.OFFER_REQUEST),
        ("quiero financiamiento", False, InteractionType.INFO_REQUEST),
        ("Financiar?", True, InteractionType.INFO_REQUEST),
        ("Si acepto", False, InteractionType.CONTRACT_ACCEPTANCE),
        ("sí acepto", True, InteractionType.CONTRACT_ACCEPTANCE),
        ("ofertas", True, InteractionType.OFFER_RESPONSE),
        ("hola", False, None),
        ("", False, None),
    ],
)
def test_classify_message(text, has_offer, expected):
    assert classify_message(text, has_offer=has_offer) == expected


# ============================================================
# Handler
# ============================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_offer_request_sends_catalogue(fake_db, fake_session, handler):
    result = await handler(_message("Oferta "))

    assert result == InteractionType.OFFER_REQUEST
    assert len(fake_session.media) == len(PROMOTIONS)
    assert [m.data for _, m, _ in fake_session.media] == [p.image_url for p in PROMOTIONS]
    assert [c for _, _, c in fake_session.media] == [p.caption for p in PROMOTIONS]

    logged = fake_db["interacciones"].documents
    assert len(logged) == 1
    assert logged[0]["tipo"] == "solicitudOferta"
    assert logged[0]["numero"] == "51987654321"
    assert fake_db["clientes"].documents[0]["numero"] == "51987654321"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_financing_question_updates_marketing_list(fake_db, handler):
    await handler(_message("¿Tienen financiamiento?"))
    await handler(_message("Me interesa financiar"))

    interest = fake_db["publifinanciamiento"].documents
    assert len(interest) == 1
    assert interest[0]["message"] == "Me interesa financiar"
    assert [d["tipo"] for d in fake_db["interacciones"].documents] == ["solicitudInfo", "solicitudInfo"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_contract_acceptance_is_logged(fake_db, fake_session, handler):
    result = await handler(_message("si acepto"))

    assert result == InteractionType.CONTRACT_ACCEPTANCE
    assert fake_db["interacciones"].documents[0]["tipo"] == "aceptacionContrato"
    assert fake_session.texts == []
    assert fake_session.media == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_reply_after_offer_references_offer(fake_db, handler):
    fake_db["offers"]._store({"numero": "51987654321"})

    result = await handler(_message("me interesa la alarma"))

    assert result == InteractionType.OFFER_RESPONSE
    logged = fake_db["interacciones"].documents[0]
    assert logged["tipo"] == "respuestaOferta"
    assert logged["ofertaReferencia"] == "fake_id_1"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_other_text_only_touches_customer(fake_db, handler):
    result = await handler(_message("hola"))

    assert result is None
    assert fake_db["interacciones"].documents == []
    customer = fake_db["clientes"].documents[0]
    assert customer["numero"] == "51987654321"
    assert "createdAt" in customer
    assert "lastInteraction" in customer


# ============================================================
# Initial offer campaign
# ============================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_initial_offer_campaign_records_delivered_numbers(fake_db, fake_session, no_sleep):
    fake_db["clientes"]._store({"numero": "51911111111"})
    fake_db["clientes"]._store({"numero": "51922222222"})
    fake_db["clientes"]._store({"numero": "51933333333"})
    fake_db["offers"]._store({"numero": "51911111111"})
    queue = BroadcastQueue(BroadcastDispatcher(fake_session, sleep=no_sleep))

    queue.start()
    try:
        job = await queue_initial_offers(queue)
        await queue.join()
    finally:
        await queue.stop()

    assert job.recipients == ["51922222222", "51933333333"]
    assert job.status == "done"
    assert [text for _, text in fake_session.texts] == [INITIAL_OFFER_MESSAGE, INITIAL_OFFER_MESSAGE]
    assert no_sleep.delays == [3600]
    assert sorted(d["numero"] for d in fake_db["offers"].documents) == ["51911111111", "51922222222", "51933333333"]
    assert [d["tipo"] for d in fake_db["interacciones"].documents] == ["ofertaInicial", "ofertaInicial"]
