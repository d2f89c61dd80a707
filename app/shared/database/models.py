from sqlalchemy import Column, String, DateTime, JSON, Index
from sqlalchemy.sql import func
from app.config.database import Base

class TimestampMixin:
    """Mixin para timestamps automáticos"""
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

# ===== DOCUMENTOS =====

class Document(Base, TimestampMixin):
    """
    Documento sin esquema de una colección (users, products, customers, sales).

    `rev` cambia en cada escritura exitosa y debe presentarse en la siguiente.
    """
    __tablename__ = "documents"

    collection = Column(String(64), primary_key=True)
    id = Column(String(255), primary_key=True)
    rev = Column(String(64), nullable=False)
    body = Column(JSON, nullable=False)

    __table_args__ = (
        Index("ix_documents_collection", "collection"),
    )
