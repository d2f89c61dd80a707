# app/modules/sales/router.py
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.modules.reports.service import ReportService
from app.modules.reports.pdf import render_invoice_pdf
from .service import SalesService
from .schemas import SaleCreateRequest, SaleCreatedResponse, SaleResponse

router = APIRouter(prefix="/sales", tags=["Sales"])

# ==================== REGISTRO DE VENTAS ====================

@router.post("", response_model=SaleCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_sale(
    sale_data: SaleCreateRequest,
    db: Session = Depends(get_db)
):
    """
    Registrar venta: valida stock de todos los items, descuenta stock
    y guarda la venta.

    Errores:
    - 400 `invalid_quantity` / `validation_error`: items vacíos o cantidad no positiva
    - 404 `product_not_found` / `customer_not_found`
    - 400 `insufficient_stock`: no se descontó stock de ningún item
    - 409 `stock_conflict`: concurrencia persistente, se puede reintentar
    """
    return SalesService(db).create_sale(sale_data)

# ==================== CONSULTAS ====================

@router.get("", response_model=List[SaleResponse])
def list_sales(db: Session = Depends(get_db)):
    return SalesService(db).list_sales()


@router.get("/{sale_id}", response_model=SaleResponse)
def get_sale(sale_id: str, db: Session = Depends(get_db)):
    return SalesService(db).get_sale(sale_id)


@router.get("/{sale_id}/invoice")
def sale_invoice(sale_id: str, db: Session = Depends(get_db)):
    """Factura PDF de la venta, con imagen de cada producto si todavía existe"""
    invoice = ReportService(db).invoice(sale_id)
    content = render_invoice_pdf(invoice)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="factura_{sale_id.replace(":", "_")}.pdf"'}
    )
