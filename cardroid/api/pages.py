"""
Back-office HTML pages

Small inline templates for the forms and listings used by the shop staff.
Every value coming from the store or a request is escaped.
"""
from html import escape
from typing import Dict, List

from cardroid.models import Customer, Financing, LedgerReport, ReportPeriod, TransactionType
from cardroid.services.dispatcher import BroadcastJob
from cardroid.utils.dates import format_date

NAV_LINKS = [
    ("/crm", "Dashboard CRM"),
    ("/financiamiento/crear", "Nuevo Financiamiento"),
    ("/financiamiento/buscar", "Buscar Financiamiento"),
    ("/garantia/crear", "Generar Garantía"),
    ("/crm/send-custom", "Mensaje Personalizado"),
    ("/crm/transacciones", "Transacciones"),
    ("/qr", "Ver QR"),
    ("/whatsapp/restart", "Reiniciar WhatsApp"),
]

STYLE = """
body { font-family: Arial, sans-serif; background: #f7f7f7; margin: 0; }
nav { background: #007BFF; padding: 10px; text-align: center; margin-bottom: 20px; }
nav a { color: white; margin: 0 10px; text-decoration: none; }
.container { background: #fff; padding: 20px; border-radius: 8px; max-width: 760px; margin: auto;
             box-shadow: 0 2px 5px rgba(0,0,0,0.1); }
h1, h2 { text-align: center; }
input, select, textarea, button { width: 100%; padding: 10px; margin: 5px 0; border-radius: 4px;
                                  border: 1px solid #ccc; box-sizing: border-box; }
button { background-color: #007BFF; color: #fff; border: none; cursor: pointer; }
table { width: 100%; border-collapse: collapse; margin-top: 15px; }
th, td { border: 1px solid #ddd; padding: 8px; text-align: center; }
th { background: #f2f2f2; }
.stat { margin: 6px 0; font-size: 1.1em; }
.inline button, .inline input { width: auto; }
"""


def _nav() -> str:
    links = "".join(f'<a href="{href}">{escape(label)}</a>' for href, label in NAV_LINKS)
    return f"<nav>{links}</nav>"


def layout(title: str, body: str) -> str:
    """Full page with the navigation bar."""
    return f"""<!DOCTYPE html>
<html lang="es">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(title)}</title>
    <style>{STYLE}</style>
</head>
<body>
    {_nav()}
    <div class="container">
        {body}
    </div>
</body>
</html>"""


def message_page(title: str, message: str) -> str:
    return layout(title, f"<h2>{escape(title)}</h2><p>{escape(message)}</p>")


# ============================================================
# CRM
# ============================================================

def render_dashboard(total_customers: int, counts: Dict[str, int], customers: List[Customer]) -> str:
    rows = "".join(
        f"<tr><td>{escape(c.phone)}</td>"
        f"<td>{c.last_interaction.strftime('%d/%m/%Y %H:%M') if c.last_interaction else '-'}</td></tr>"
        for c in customers
    )
    body = f"""
        <h1>Dashboard CRM</h1>
        <div class="stat">Total de clientes: {total_customers}</div>
        <div class="stat">Solicitudes de oferta: {counts.get('solicitudOferta', 0)}</div>
        <div class="stat">Respuestas a ofertas: {counts.get('respuestaOferta', 0)}</div>
        <div class="stat">Solicitudes de información: {counts.get('solicitudInfo', 0)}</div>
        <div class="stat">Contratos aceptados: {counts.get('aceptacionContrato', 0)}</div>
        <form method="POST" action="/crm/send-offers">
            <button type="submit">Enviar Oferta a Todos</button>
        </form>
        <button onclick="location.href='/crm/send-custom'">Enviar Mensaje Personalizado</button>
        <button onclick="location.href='/crm/export-transactions'">Exportar Transacciones</button>
        <h2>Lista de Clientes</h2>
        <table>
            <tr><th>Número</th><th>Última Interacción</th></tr>
            {rows}
        </table>"""
    return layout("Dashboard CRM", body)


def render_broadcast_form() -> str:
    body = """
        <h1>Mensaje Personalizado</h1>
        <form method="POST" action="/crm/send-custom">
            <label for="message">Mensaje:</label>
            <textarea id="message" name="message" rows="4" required></textarea>
            <label for="imageUrl">URL de Imagen (opcional):</label>
            <input id="imageUrl" name="imageUrl" type="url" placeholder="https://ejemplo.com/imagen.jpg">
            <label for="listType">Tipo de lista:</label>
            <select id="listType" name="listType" required>
                <option value="clientes">Clientes</option>
                <option value="compradores">Compradores</option>
                <option value="publifinanciamiento">Publifinanciamiento</option>
                <option value="personalizado">Personalizado</option>
            </select>
            <div id="recipientsContainer"></div>
            <button type="submit">Enviar Mensajes</button>
        </form>
        <script>
        (function(){
          const container = document.getElementById('recipientsContainer');
          const listType = document.getElementById('listType');
          function esc(s) { const d = document.createElement('div'); d.textContent = s; return d.innerHTML; }
          function loadRecipients() {
            const type = listType.value;
            if (type === 'personalizado') {
              container.innerHTML = '<input name="recipients" type="tel" placeholder="51987654321" required>';
              return;
            }
            container.innerHTML = '<p>Cargando destinatarios...</p>';
            fetch('/crm/send-custom/list?listType=' + type)
              .then(res => res.json())
              .then(list => {
                if (!list.length) { container.innerHTML = '<p>No hay destinatarios en esta lista.</p>'; return; }
                container.innerHTML = list.map(item =>
                  '<label class="inline"><input type="checkbox" name="recipients" value="' + esc(item.phone) +
                  '" checked> ' + esc(item.phone) + (item.producto ? ' - ' + esc(item.producto) : '') + '</label><br>'
                ).join('');
              })
              .catch(() => { container.innerHTML = '<p>Error cargando destinatarios.</p>'; });
          }
          listType.addEventListener('change', loadRecipients);
          window.addEventListener('DOMContentLoaded', loadRecipients);
        })();
        </script>"""
    return layout("Mensaje Personalizado", body)


def render_job(job: BroadcastJob) -> str:
    items = "".join(
        f"<li>{escape(str(r.phone or '-'))}: {'Éxito' if r.success else 'Error: ' + escape(r.error or '')}</li>"
        for r in job.results
    )
    pending = len(job.recipients) - len(job.results)
    body = f"""
        <h2>Resultados del Envío</h2>
        <p>{escape(job.description or 'Envío')} ({escape(job.job_id)}): {escape(job.status)}.
           Procesados {len(job.results)} de {len(job.recipients)}{f', pendientes {pending}' if pending else ''}.</p>
        <ul>{items}</ul>
        <a href="/crm/send-custom/jobs/{escape(job.job_id)}">Actualizar</a> |
        <a href="/crm/send-custom">Volver</a>"""
    return layout("Resultados del Envío", body)


# ============================================================
# Ledger
# ============================================================

def render_ledger_form(message: str = "") -> str:
    options = "".join(f'<option value="{t.value}">{t.value}</option>' for t in TransactionType)
    periods = "".join(f'<option value="{p.value}">{p.value.capitalize()}</option>' for p in ReportPeriod)
    notice = f"<p>{escape(message)}</p>" if message else ""
    body = f"""
        <h1>Transacciones</h1>
        {notice}
        <form method="POST" action="/crm/transacciones">
            <input type="text" name="fecha" placeholder="Fecha (DD/MM/YYYY, opcional)">
            <select name="tipo" required>{options}</select>
            <input type="text" name="descripcion" placeholder="Descripción">
            <input type="number" step="0.01" min="0" name="monto" placeholder="Monto" required>
            <button type="submit">Registrar Transacción</button>
        </form>
        <h2>Reportes</h2>
        <form method="GET" action="/crm/reportes">
            <select name="periodo">{periods}</select>
            <input type="text" name="fecha" placeholder="Fecha de referencia (DD/MM/YYYY, opcional)">
            <button type="submit">Ver Reporte</button>
        </form>"""
    return layout("Transacciones", body)


def render_report(report: LedgerReport, currency: str = "S/") -> str:
    body = f"""
        <h1>Reporte {escape(ReportPeriod(report.period).value)}</h1>
        <p>Del {format_date(report.start)} al {format_date(report.end)}</p>
        <table>
            <tr><th>Ventas</th><th>Gastos</th><th>Balance</th><th>Transacciones</th></tr>
            <tr><td>{currency} {report.sales_total:.2f}</td><td>{currency} {report.expenses_total:.2f}</td>
                <td>{currency} {report.balance:.2f}</td><td>{report.transaction_count}</td></tr>
        </table>"""
    return layout("Reporte", body)


# ============================================================
# Financing
# ============================================================

def render_financing_form() -> str:
    body = """
        <h1>Registrar Financiamiento</h1>
        <form method="POST" action="/financiamiento/crear">
            <input type="text" name="nombre" placeholder="Nombre completo" required>
            <input type="text" name="numero" placeholder="Número de WhatsApp (sin '+')" required>
            <input type="text" name="dni" placeholder="DNI" required>
            <input type="text" name="placa" placeholder="Placa del vehículo" required>
            <input type="number" step="0.01" name="montoTotal" placeholder="Monto total a financiar" required>
            <input type="number" step="0.01" name="cuotaInicial" placeholder="Cuota inicial (opcional)">
            <input type="number" name="numCuotas" placeholder="Número de cuotas restantes (opcional)" min="1">
            <button type="submit">Registrar Financiamiento</button>
        </form>"""
    return layout("Registrar Financiamiento", body)


def render_search_form() -> str:
    body = """
        <h1>Buscar Financiamiento</h1>
        <form method="GET" action="/financiamiento/buscar/result">
            <input type="text" name="buscar" placeholder="Ingrese número o placa" required>
            <button type="submit">Buscar</button>
        </form>"""
    return layout("Buscar Financiamiento", body)


def _installments_table(financing: Financing, currency: str) -> str:
    rows = []
    for position, installment in enumerate(financing.installments):
        if installment.paid:
            action = "Sí"
        else:
            if installment.installment_id:
                reference = f'<input type="hidden" name="cuota_id" value="{escape(installment.installment_id)}">'
            else:
                reference = f'<input type="hidden" name="indice" value="{position}">'
            action = f"""
                <form method="POST" action="/financiamiento/marcar" class="inline" style="margin:0;">
                    <input type="hidden" name="numero" value="{escape(financing.phone)}">
                    {reference}
                    <button type="submit">Marcar Pagada</button>
                </form>"""
        rows.append(
            f"<tr><td>{position + 1}</td><td>{currency} {installment.amount:.2f}</td>"
            f"<td>{format_date(installment.due_date)}</td><td>{action}</td></tr>"
        )
    return (
        "<table><tr><th>#</th><th>Monto</th><th>Vencimiento</th><th>Pagada</th></tr>"
        + "".join(rows)
        + "</table>"
    )


def render_search_results(financings: List[Financing], currency: str = "S/") -> str:
    sections = "".join(
        f"""
        <h3>{escape(f.customer_name)} - {escape(f.phone)}</h3>
        <p>DNI: {escape(f.id_document)} | Placa: {escape(f.plate)} |
           Monto total: {currency} {f.total_amount:.2f} | Inicial: {currency} {f.down_payment:.2f}</p>
        {_installments_table(f, currency)}"""
        for f in financings
    )
    return layout("Resultado de Búsqueda", f"<h2>Financiamientos encontrados</h2>{sections}")


# ============================================================
# Warranty
# ============================================================

def render_warranty_form() -> str:
    body = """
        <h1>Generar Certificado de Garantía</h1>
        <form method="POST" action="/garantia/crear">
            <input type="tel" name="numeroCelular" placeholder="Número de contacto (sin '+')" required>
            <input type="text" name="fechaInstalacion" placeholder="Fecha instalación (DD/MM/YYYY)" required>
            <input type="text" name="placa" placeholder="Placa (opcional)">
            <input type="text" name="nombreProducto" placeholder="Nombre del producto" required>
            <button type="submit">Generar y Enviar</button>
        </form>"""
    return layout("Generar Garantía", body)

