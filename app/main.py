import logging
import sys

from fastapi import FastAPI
from contextlib import asynccontextmanager

from app.config.settings import settings
from app.config.database import init_db
from app.core.exceptions import register_exception_handlers
from app.core.middleware import setup_middleware
from app.api.v1.router import api_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    stream=sys.stdout
)
logger = logging.getLogger("app")

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 Inventario POS API Starting...")
    logger.info(f"📍 Version: {settings.version}")
    logger.info(f"🌍 Environment: {'Development' if settings.debug else 'Production'}")
    logger.info(f"⏰ Token Expire: {settings.access_token_expire_minutes} minutes")
    if not settings.smtp_configured:
        logger.warning("SMTP no configurado: los correos de restablecimiento no se enviarán")

    try:
        init_db()
    except Exception:
        logger.critical("❌ No se pudo inicializar el almacén de documentos", exc_info=True)
        raise

    yield

    # Shutdown
    logger.info("🛑 Inventario POS API Shutting down...")

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Sistema de Inventario y Punto de Venta",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

# Setup middleware
setup_middleware(app)
register_exception_handlers(app)

# Include routers
app.include_router(api_router, prefix="/api")

# Comprobación de vida
@app.get("/ping")
async def ping():
    return {"ok": True}

@app.get("/")
async def root():
    return {
        "message": "Inventario POS API",
        "version": settings.version,
        "status": "running",
        "docs": "/docs" if settings.debug else "Disabled in production",
        "api": "/api"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
