from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker
from .settings import settings

connect_args = {}
if settings.database_url.startswith("sqlite"):
    # Las sesiones se usan desde el threadpool de FastAPI
    connect_args = {"check_same_thread": False}

# Create engine
engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    pool_recycle=300,
    echo=settings.database_echo,
    connect_args=connect_args
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()

# Database dependency
def get_db():
    """Database dependency for FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    """
    Verificar conexión y crear la tabla de documentos si no existe.
    Un fallo aquí es fatal para el arranque.
    """
    # Registrar modelos en el metadata
    from app.shared.database import models  # noqa: F401

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    Base.metadata.create_all(bind=engine)
