# app/modules/reports/__init__.py
"""
Módulo de Reportes

- service.py: agregaciones de sólo lectura sobre ventas, productos y clientes
- pdf.py: factura e inventario en PDF (reportlab)
- spreadsheets.py: reportes XLSX (openpyxl)
- router.py: Endpoints FastAPI
"""

from .router import router as reports_router
from .service import ReportService

__all__ = [
    "reports_router",
    "ReportService"
]
