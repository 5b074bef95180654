"""
Unit tests for warranty certificate and financing contract documents
"""
import pytest
from datetime import date

from cardroid.models import ContractDocument, Installment, WarrantyDocument
from cardroid.services.pdf_renderer import (
    contract_blocks,
    document_text,
    render_contract_pdf,
    render_warranty_pdf,
    warranty_blocks,
)


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def warranty():
    return WarrantyDocument(
        phone="51987654321",
        product="Radio Android 10\"",
        plate="ABC-123",
        install_date=date(2025, 1, 15),
        expiration_date=date(2026, 1, 15),
    )


@pytest.fixture
def contract():
    return ContractDocument(
        customer_name="Juan Pérez",
        id_document="45678912",
        plate="ABC-123",
        total_amount=1000,
        down_payment=350,
        installments=[
            Installment(amount=325, due_date=date(2025, 1, 31)),
            Installment(amount=325, due_date=date(2025, 3, 2)),
        ],
        start_date=date(2025, 1, 1),
        end_date=date(2025, 3, 2),
    )


# ============================================================
# Warranty certificate
# ============================================================

@pytest.mark.unit
def test_warranty_includes_fields(warranty):
    text = document_text(warranty_blocks(warranty))

    assert "Número de contacto del cliente: 51987654321" in text
    assert "Fecha de instalación: 15/01/2025" in text
    assert "Placa del vehículo: ABC-123" in text
    assert "Vigente hasta: 15/01/2026" in text


@pytest.mark.unit
def test_warranty_omits_plate_line_without_plate(warranty):
    warranty.plate = None

    text = document_text(warranty_blocks(warranty))

    assert "Placa del vehículo" not in text


@pytest.mark.unit
def test_warranty_content_is_deterministic(warranty):
    assert warranty_blocks(warranty) == warranty_blocks(warranty)


@pytest.mark.unit
def test_warranty_renders_pdf(warranty):
    assert render_warranty_pdf(warranty).startswith(b"%PDF")


# ============================================================
# Financing contract
# ============================================================

@pytest.mark.unit
def test_contract_lists_every_installment(contract):
    text = document_text(contract_blocks(contract))

    assert "Inicial: S/ 350.00 (abonado el 01/01/2025)" in text
    assert "Cuota 1: S/ 325.00 (vence el 31/01/2025)" in text
    assert "Cuota 2: S/ 325.00 (vence el 02/03/2025)" in text
    assert "DNI N.° 45678912" in text
    assert "El cronograma termina el 02/03/2025." in text


@pytest.mark.unit
def test_contract_renders_pdf(contract):
    pdf = render_contract_pdf(contract)

    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000
