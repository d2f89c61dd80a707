# app/modules/reports/router.py
from datetime import date

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_user
from app.core.auth.schemas import UserResponse
from .service import ReportService
from .spreadsheets import (
    XLSX_MEDIA_TYPE, render_customer_purchases_xlsx, render_sales_total_xlsx, render_stock_xlsx
)

router = APIRouter(prefix="/reports", tags=["Reports"])


def _xlsx_response(content: bytes, name: str) -> Response:
    filename = f"{name}_{date.today().isoformat()}.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("/sales-total")
def sales_total_report(
    current_user: UserResponse = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Valor total de ventas (XLSX)"""
    report = ReportService(db).sales_total()
    return _xlsx_response(render_sales_total_xlsx(report), "reporte_ventas")


@router.get("/stock")
def stock_report(
    current_user: UserResponse = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Productos en stock y valor del inventario (XLSX)"""
    report = ReportService(db).stock_summary()
    return _xlsx_response(render_stock_xlsx(report), "reporte_stock")


@router.get("/customer-purchases/{customer_id}")
def customer_purchases_report(
    customer_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Compras de un cliente (XLSX). Acepta el ID del cliente o parte de su nombre.
    """
    report = ReportService(db).customer_purchases(customer_id)
    safe_ref = "".join(c if c.isalnum() or c in "-_" else "_" for c in customer_id)
    return _xlsx_response(render_customer_purchases_xlsx(report), f"compras_cliente_{safe_ref}")
