# app/modules/sales/__init__.py
"""
Módulo de Ventas

- Registro de ventas con descuento de stock (validar y confirmar, con reversión)
- Consulta de ventas
- Factura PDF

Arquitectura:
- router.py: Endpoints FastAPI
- service.py: Coordinador de la transacción de venta
- repository.py: Acceso a documentos
- schemas.py: Modelos Pydantic de request/response
"""

from .router import router as sales_router
from .service import SalesService
from .repository import SalesRepository

__all__ = [
    "sales_router",
    "SalesService",
    "SalesRepository"
]
