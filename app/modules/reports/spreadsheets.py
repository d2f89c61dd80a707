# app/modules/reports/spreadsheets.py
from io import BytesIO
from typing import List, Tuple

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.worksheet.worksheet import Worksheet

from .pdf import format_date
from .schemas import CustomerPurchasesReport, SalesTotalReport, StockReport

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

HEADER_FILL = PatternFill(fill_type="solid", fgColor="FFD3D3D3")
TOTAL_FILL = PatternFill(fill_type="solid", fgColor="FFFFFF00")
BOLD = Font(bold=True)
MONEY_FORMAT = "#,##0.00"


def _header(ws: Worksheet, row: int, columns: List[Tuple[str, int]]):
    for index, (title, width) in enumerate(columns, start=1):
        cell = ws.cell(row=row, column=index, value=title)
        cell.font = BOLD
        cell.fill = HEADER_FILL
        ws.column_dimensions[cell.column_letter].width = width


def _total_row(ws: Worksheet, values: list, highlight: List[int], money: List[int]):
    ws.append(values)
    row = ws.max_row
    for index in range(1, len(values) + 1):
        cell = ws.cell(row=row, column=index)
        cell.font = BOLD
        if index in highlight:
            cell.fill = TOTAL_FILL
        if index in money:
            cell.number_format = MONEY_FORMAT


def _to_bytes(wb: Workbook) -> bytes:
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()

# ==================== REPORTES ====================

def render_sales_total_xlsx(report: SalesTotalReport) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Reporte de Ventas"
    _header(ws, 1, [("ID Venta", 30), ("Cliente", 30), ("Fecha", 20), ("Total", 15)])

    for row in report.rows:
        ws.append([row.sale_id, row.customer_name, format_date(row.created_at), row.total])
        ws.cell(row=ws.max_row, column=4).number_format = MONEY_FORMAT

    _total_row(ws, ["", "", "TOTAL VENTAS:", report.grand_total], highlight=[4], money=[4])
    return _to_bytes(wb)


def render_stock_xlsx(report: StockReport) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Reporte de Stock"
    _header(ws, 1, [
        ("ID Producto", 30), ("Nombre", 30), ("Precio", 15),
        ("Stock Disponible", 20), ("Valor Total Stock", 20)
    ])

    for row in report.rows:
        ws.append([row.product_id, row.name, row.price, row.stock, row.stock_value])
        ws.cell(row=ws.max_row, column=3).number_format = MONEY_FORMAT
        ws.cell(row=ws.max_row, column=5).number_format = MONEY_FORMAT

    _total_row(ws, ["", "", "", report.total_units, report.total_value], highlight=[4, 5], money=[5])
    return _to_bytes(wb)


def render_customer_purchases_xlsx(report: CustomerPurchasesReport) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Compras del Cliente"

    ws.merge_cells("A1:E1")
    title = ws["A1"]
    title.value = f"Compras del Cliente: {report.customer_name}"
    title.font = Font(bold=True, size=14)
    title.alignment = Alignment(horizontal="center")

    _header(ws, 3, [("ID Venta", 30), ("Fecha", 20), ("Productos", 40), ("Cantidad Total", 15), ("Total", 15)])

    for row in report.rows:
        ws.append([row.sale_id, format_date(row.created_at), row.products, row.quantity, row.total])
        ws.cell(row=ws.max_row, column=5).number_format = MONEY_FORMAT

    _total_row(ws, ["", "", "TOTAL:", report.total_quantity, report.total_purchases], highlight=[5], money=[5])
    return _to_bytes(wb)
