# app/modules/products/router.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_user
from app.core.auth.schemas import UserResponse
from app.modules.reports.service import ReportService
from app.modules.reports.pdf import render_inventory_pdf
from .service import ProductService
from .schemas import ProductResponse, ProductMessageResponse

router = APIRouter(prefix="/products", tags=["Products"])

# ==================== REPORTE PDF ====================

@router.get("/report/pdf")
def inventory_report_pdf(
    current_user: UserResponse = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Inventario completo en PDF (nombre, precio, stock, descripción y foto)
    """
    report = ReportService(db).inventory()
    content = render_inventory_pdf(report)
    filename = f"inventory_{date.today().isoformat()}.pdf"
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )

# ==================== CONSULTAS PÚBLICAS ====================

@router.get("", response_model=List[ProductResponse])
def list_products(db: Session = Depends(get_db)):
    """Listado de productos con foto como data URI"""
    return ProductService(db).list_products()


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: str, db: Session = Depends(get_db)):
    return ProductService(db).get_product(product_id)

# ==================== GESTIÓN DE INVENTARIO ====================

@router.post("", response_model=ProductMessageResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    name: str = Form("", description="Nombre del producto"),
    description: str = Form("", description="Descripción"),
    price: str = Form("0", description="Precio unitario"),
    stock: str = Form("0", description="Stock inicial"),
    photo: Optional[UploadFile] = File(None, description="Foto del producto"),
    photo_base64: Optional[str] = Form(None, description="Foto en base64 o data URI"),
    photo_mime: Optional[str] = Form(None, description="MIME de photo_base64"),
    current_user: UserResponse = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Crear producto (multipart/form-data).

    La foto puede enviarse como archivo `photo` o como `photo_base64`.
    """
    service = ProductService(db)
    return service.create_product(
        name=name,
        description=description,
        price=price,
        stock=stock,
        photo=photo,
        photo_base64=photo_base64,
        photo_mime=photo_mime
    )


@router.put("/{product_id}", response_model=ProductMessageResponse)
def update_product(
    product_id: str,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    photo_base64: Optional[str] = Form(None),
    photo_mime: Optional[str] = Form(None),
    current_user: UserResponse = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Actualizar campos enviados del producto"""
    service = ProductService(db)
    return service.update_product(
        product_id,
        name=name,
        description=description,
        price=price,
        stock=stock,
        photo=photo,
        photo_base64=photo_base64,
        photo_mime=photo_mime
    )


@router.delete("/{product_id}", response_model=ProductMessageResponse)
def delete_product(
    product_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return ProductService(db).delete_product(product_id)
