# app/modules/products/__init__.py
"""
Módulo de Productos - Gestión de inventario

- CRUD de productos con imagen embebida
- Ledger de stock con escritura condicional por revisión
- Reporte PDF del inventario

Arquitectura:
- router.py: Endpoints FastAPI
- service.py: Lógica de negocio
- repository.py: Acceso a documentos
- ledger.py: Lectura y compare-and-swap del stock
- schemas.py: Modelos Pydantic de respuesta
"""

from .router import router as products_router
from .service import ProductService
from .repository import ProductRepository
from .ledger import ProductStockLedger, StockSnapshot

__all__ = [
    "products_router",
    "ProductService",
    "ProductRepository",
    "ProductStockLedger",
    "StockSnapshot"
]
