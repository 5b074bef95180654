"""
PDF documents: warranty certificate and financing contract

Each document is described as a list of text blocks (fixed paragraphs with
field substitutions) and then flowed onto A4 pages with reportlab. The block
list is deterministic for a given input, which keeps the content testable
without parsing PDFs.
"""
from io import BytesIO
from typing import List, Tuple, Union
from xml.sax.saxutils import escape

from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import ListFlowable, ListItem, Paragraph, SimpleDocTemplate, Spacer

from cardroid.models import ContractDocument, WarrantyDocument
from cardroid.utils.dates import format_date

SELLER_NAME = "CRD PERÚ"
SELLER_REPRESENTATIVE = "Jordy Vigo"
JURISDICTION_CITY = "Trujillo"

Block = Tuple[str, Union[str, List[str]]]


def _money(value: float) -> str:
    return f"{value:.2f}"


def warranty_blocks(data: WarrantyDocument) -> List[Block]:
    """Content of the warranty certificate."""
    install = format_date(data.install_date)
    blocks: List[Block] = [
        ("title", "GARANTÍA GENERAL – RADIO ANDROID CARDROID"),
        ("text", f"Número de contacto del cliente: {data.phone}"),
        ("text", f"Fecha de instalación: {install}"),
    ]
    if data.plate:
        blocks.append(("text", f"Placa del vehículo: {data.plate}"))
    blocks += [
        ("text", f"Producto: {data.product}"),
        ("text", f"Vigente hasta: {format_date(data.expiration_date)}"),
        ("heading", "1. DURACIÓN DE LA GARANTÍA"),
        ("text", f"La garantía tiene una vigencia de 1 año calendario desde la fecha de instalación ({install}), "
                 "y aplica exclusivamente a defectos de fábrica del producto instalado."),
        ("heading", "2. COBERTURA DE GARANTÍA"),
        ("text", "Incluye:"),
        ("list", [
            "Fallas internas del sistema causadas por defecto de fabricación.",
            "Problemas del software original (sin modificaciones).",
            "Pantalla sin imagen o sin tacto sin daño físico visible.",
            "El proceso de evaluación técnica tomará entre 3 a 7 días hábiles desde la recepción del equipo.",
        ]),
        ("heading", "3. EXCLUSIONES EXPLÍCITAS DE GARANTÍA"),
        ("text", "Esta garantía no aplica en los siguientes casos:"),
        ("list", [
            "A. Daños físicos o ambientales: pantalla rota, rayada o hundida; golpes o fisuras; "
            "ingreso de líquidos, humedad, tierra o corrosión.",
            "B. Limpieza incorrecta: silicona líquida, abrillantador o alcohol directo sobre la pantalla; "
            "productos grasosos de carwash.",
            "C. Problemas derivados del vehículo: picos de voltaje, cortocircuitos, alternador, batería "
            "o instalaciones deficientes.",
            "D. Manipulación o modificación no autorizada: apertura por personal ajeno a Cardroid, "
            "ROMs no oficiales, root o flasheo.",
            "E. Uso indebido o negligente: dispositivos USB de alto consumo, uso prolongado con el motor "
            "apagado, exceso de calor.",
        ]),
        ("heading", "4. OTROS ASPECTOS NO CUBIERTOS"),
        ("text", "Daños o mal funcionamiento de cámaras de retroceso, consolas, marcos, micrófonos, antenas o adaptadores."),
        ("text", "Pérdida de datos, cuentas, configuraciones, apps o contraseñas."),
        ("text", "Problemas de red WiFi, incompatibilidad con apps externas o streaming."),
        ("heading", "5. RECOMENDACIONES PARA PRESERVAR TU GARANTÍA"),
        ("list", [
            "No permitas que terceros manipulen la radio.",
            "Limpia solo con paño de microfibra ligeramente humedecido con agua.",
            "Evita el uso de silicona o abrillantador en carwash o en el interior del auto.",
            "Instala solo apps necesarias desde Play Store.",
            "Siempre enciende la radio con el motor encendido para evitar daños eléctricos.",
        ]),
    ]
    return blocks


def contract_blocks(data: ContractDocument) -> List[Block]:
    """Content of the financing contract, including the full payment schedule."""
    start = format_date(data.start_date)
    schedule = [f"Inicial: S/ {_money(data.down_payment)} (abonado el {start})"]
    schedule += [
        f"Cuota {n}: S/ {_money(c.amount)} (vence el {format_date(c.due_date)})"
        for n, c in enumerate(data.installments, start=1)
    ]

    return [
        ("title", "CONTRATO DE FINANCIAMIENTO DIRECTO CON OPCIÓN A COMPRA"),
        ("text", f"Con este documento, {SELLER_NAME}, representado por el Sr. {SELLER_REPRESENTATIVE}, "
                 f"en adelante \"EL VENDEDOR\", y el cliente {data.customer_name}, identificado con "
                 f"DNI N.° {data.id_document}, con vehículo de placa {data.plate}, en adelante \"EL CLIENTE\", "
                 "acuerdan lo siguiente:"),
        ("heading", "1. SOBRE EL PRODUCTO"),
        ("text", "EL CLIENTE recibe un equipo multimedia (radio Android) completamente instalado en su vehículo, "
                 "con opción a compra bajo modalidad de financiamiento directo. "
                 f"El valor total del producto es de S/ {_money(data.total_amount)}."),
        ("heading", "2. FORMA DE PAGO"),
        ("text", "EL CLIENTE se compromete a pagar según el siguiente cronograma:"),
        ("list", schedule),
        ("text", f"El cronograma termina el {format_date(data.end_date)}. La propiedad del equipo pasará a "
                 "EL CLIENTE una vez que haya pagado el 100% del valor acordado."),
        ("heading", "3. SOBRE LA APLICACIÓN DE CONTROL"),
        ("text", "Para asegurar el cumplimiento del pago, EL CLIENTE acepta la instalación de una aplicación de control que:"),
        ("list", [
            "Funciona en pantalla completa (modo kiosko).",
            "Muestra notificaciones de pago pendiente.",
            "Puede limitar funciones del equipo en caso de mora.",
            "Solo se desactiva definitivamente tras el pago completo.",
        ]),
        ("heading", "4. GARANTÍA"),
        ("text", "El producto cuenta con garantía por 12 meses, la cual se activa al completarse el pago total."),
        ("heading", "5. COMPROMISOS DEL CLIENTE"),
        ("list", [
            "No modificar ni desinstalar la aplicación de control.",
            "No formatear, rootear ni flashear la radio.",
            "No vender, empeñar o ceder el equipo hasta cancelar el monto total.",
            "Asumir la responsabilidad por robo, daño o pérdida durante el periodo de pago.",
        ]),
        ("heading", "6. EN CASO DE INCUMPLIMIENTO"),
        ("list", [
            "Limitar el uso del equipo hasta regularizar la situación.",
            "Solicitar la devolución del producto sin reembolso de lo ya abonado.",
            "Iniciar acciones legales por los montos pendientes.",
        ]),
        ("heading", "7. SOBRE LA INSTALACIÓN"),
        ("text", "La instalación del equipo está incluida y se realiza en tienda, previa cita."),
        ("heading", "8. JURISDICCIÓN"),
        ("text", "Ambas partes acuerdan que, en caso de conflicto, se someterán a los tribunales de la "
                 f"ciudad de {JURISDICTION_CITY}."),
        ("center", f"Firmado con conformidad el día {start}."),
        ("center", "___________________________"),
        ("center", f"EL VENDEDOR - {SELLER_REPRESENTATIVE} - {SELLER_NAME}"),
        ("center", "___________________________"),
        ("center", f"EL CLIENTE - Nombre: {data.customer_name} - DNI: {data.id_document} - Placa: {data.plate}"),
        ("small", "El CLIENTE deberá responder \"si acepto\" al mensaje del contrato para aceptar los términos y "
                  "condiciones. Esta respuesta quedará registrada en nuestra base de datos."),
    ]


def document_text(blocks: List[Block]) -> str:
    """Plain-text rendering of a block list."""
    lines = []
    for kind, content in blocks:
        if kind == "list":
            lines.extend(f"- {item}" for item in content)
        else:
            lines.append(str(content))
    return "\n".join(lines)


def _build_pdf(blocks: List[Block], title: str) -> bytes:
    styles = getSampleStyleSheet()
    body = styles["BodyText"]
    title_style = ParagraphStyle("DocTitle", parent=styles["Title"], fontSize=16)
    heading = ParagraphStyle("DocHeading", parent=body, fontName="Helvetica-Bold", spaceBefore=8)
    center = ParagraphStyle("DocCenter", parent=body, alignment=TA_CENTER)
    small = ParagraphStyle("DocSmall", parent=center, fontSize=8)
    styles_by_kind = {"title": title_style, "heading": heading, "text": body, "center": center, "small": small}

    story = []
    for kind, content in blocks:
        if kind == "list":
            items = [ListItem(Paragraph(escape(item), body), leftIndent=12) for item in content]
            story.append(ListFlowable(items, bulletType="bullet", start="•"))
        else:
            story.append(Paragraph(escape(str(content)), styles_by_kind[kind]))
        if kind in ("title", "list"):
            story.append(Spacer(1, 8))

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=A4, leftMargin=50, rightMargin=50, topMargin=50, bottomMargin=50, title=title
    )
    doc.build(story)
    return buffer.getvalue()


def render_warranty_pdf(data: WarrantyDocument) -> bytes:
    return _build_pdf(warranty_blocks(data), "Certificado de Garantía")


def render_contract_pdf(data: ContractDocument) -> bytes:
    return _build_pdf(contract_blocks(data), "Contrato de Financiamiento")
