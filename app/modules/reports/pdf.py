# app/modules/reports/pdf.py
import logging
from datetime import datetime
from io import BytesIO
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import (
    Flowable, HRFlowable, Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
)

from .schemas import InventoryReport, Invoice

logger = logging.getLogger(__name__)

styles = getSampleStyleSheet()
TITLE = ParagraphStyle("Title", parent=styles["Title"], fontSize=20, alignment=TA_CENTER)
RIGHT = ParagraphStyle("Right", parent=styles["Normal"], fontSize=10, alignment=TA_RIGHT)
SECTION = ParagraphStyle("Section", parent=styles["Heading3"], fontSize=12)
NORMAL = ParagraphStyle("Body", parent=styles["Normal"], fontSize=10)
SMALL = ParagraphStyle("Small", parent=styles["Normal"], fontSize=9)
TOTAL = ParagraphStyle("Total", parent=styles["Normal"], fontName="Helvetica-Bold", fontSize=14, alignment=TA_RIGHT)


def format_date(value: Optional[str]) -> str:
    if not value:
        return ""
    try:
        return datetime.fromisoformat(value).strftime("%d/%m/%Y %H:%M")
    except ValueError:
        return value


def _image(data: Optional[bytes], width: float, height: float, ref: str) -> Optional[Flowable]:
    """Imagen ajustada a la caja; None si los bytes no son una imagen válida"""
    if not data:
        return None
    try:
        image = Image(BytesIO(data))
        ratio = min(width / image.imageWidth, height / image.imageHeight)
        image.drawWidth = image.imageWidth * ratio
        image.drawHeight = image.imageHeight * ratio
        return image
    except Exception as e:
        logger.warning(f"No se pudo insertar imagen de producto {ref}: {e}")
        return None


def _separator(color=colors.HexColor("#e5e7eb"), thickness: float = 0.5) -> HRFlowable:
    return HRFlowable(width="100%", thickness=thickness, color=color, spaceBefore=4, spaceAfter=6)


def _build(story: List[Flowable], margin: float) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=A4,
        leftMargin=margin, rightMargin=margin, topMargin=margin, bottomMargin=margin
    )
    doc.build(story)
    return buffer.getvalue()

# ==================== FACTURA ====================

def render_invoice_pdf(invoice: Invoice) -> bytes:
    story: List[Flowable] = [
        Paragraph("FACTURA DE VENTA", TITLE),
        Spacer(1, 8),
        Paragraph(f"Factura No: {escape(invoice.sale_id)}", RIGHT),
        Paragraph(f"Fecha: {escape(format_date(invoice.created_at))}", RIGHT),
        Spacer(1, 12),
        Paragraph("<u>CLIENTE:</u>", SECTION),
        Paragraph(f"Nombre: {escape(invoice.customer_name)}", NORMAL),
    ]
    if invoice.customer_id and invoice.customer_id != "guest":
        story.append(Paragraph(f"ID: {escape(invoice.customer_id)}", NORMAL))
    story += [Spacer(1, 12), Paragraph("<u>PRODUCTOS:</u>", SECTION), Spacer(1, 6)]

    for line in invoice.lines:
        details = [
            Paragraph(f"<b>{escape(line.product_name)}</b>", NORMAL),
            Paragraph(f"Cantidad: {line.quantity}", SMALL),
            Paragraph(f"Precio unitario: ${line.unit_price:.2f}", SMALL),
            Paragraph(f"Subtotal: ${line.total:.2f}", SMALL),
        ]
        image = _image(line.image, 60, 60, line.product_id)
        row = [image, details] if image else [details]
        widths = [70, 400] if image else [470]
        table = Table([row], colWidths=widths)
        table.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ]))
        story += [table, _separator()]

    story += [
        Spacer(1, 6),
        _separator(colors.HexColor("#cccccc"), 1),
        Paragraph(f"TOTAL: ${invoice.total:.2f}", TOTAL),
    ]
    return _build(story, margin=50)

# ==================== INVENTARIO ====================

def render_inventory_pdf(report: InventoryReport) -> bytes:
    story: List[Flowable] = [Paragraph("Inventario de Productos", TITLE), Spacer(1, 12)]

    for product in report.products:
        story += [
            Paragraph(f"{escape(product.name)} (ID: {escape(product.product_id)})", styles["Heading4"]),
            Paragraph(f"Precio: {product.price:.2f}&nbsp;&nbsp;&nbsp;&nbsp;Stock: {product.stock}", NORMAL),
        ]
        if product.description:
            story.append(Paragraph(escape(product.description), SMALL))

        if product.image:
            image = _image(product.image, 200, 200, product.product_id)
            if image:
                image.hAlign = "LEFT"
                story += [Spacer(1, 4), image]
            else:
                story.append(Paragraph("<i>[Imagen inválida]</i>", SMALL))

        story += [Spacer(1, 8), _separator(colors.HexColor("#cccccc"))]

    if not report.products:
        story.append(Paragraph("Sin productos registrados", NORMAL))
    return _build(story, margin=40)
