# app/api/v1/router.py
from fastapi import APIRouter

from app.modules.auth import auth_router
from app.modules.products import products_router
from app.modules.customers import customers_router
from app.modules.sales import sales_router
from app.modules.reports import reports_router

# Router principal de la API (montado en /api)
api_router = APIRouter()

# ==================== MÓDULOS ====================

api_router.include_router(auth_router)
api_router.include_router(products_router)
api_router.include_router(customers_router)
api_router.include_router(sales_router)
api_router.include_router(reports_router)

# ==================== ENDPOINTS RAÍZ ====================

@api_router.get("/")
async def api_root():
    """Root endpoint de la API"""
    return {
        "message": "Inventario POS API",
        "status": "active",
        "available_endpoints": {
            "authentication": "/api/auth",
            "products": "/api/products",
            "customers": "/api/customers",
            "sales": "/api/sales",
            "reports": "/api/reports"
        }
    }
