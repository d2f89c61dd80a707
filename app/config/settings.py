from pydantic import Field
from pydantic_settings import BaseSettings
from decimal import Decimal
from typing import List, Optional

class Settings(BaseSettings):
    # App Info
    app_name: str = "Inventario POS API"
    version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./inventory.db"
    database_echo: bool = False

    # Colecciones del almacén de documentos
    users_collection: str = "users"
    products_collection: str = "products"
    customers_collection: str = "customers"
    sales_collection: str = "sales"
    find_default_limit: int = 1000
    report_find_limit: int = 10000

    # Security
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 480  # 8 horas
    reset_token_expire_minutes: int = 60
    bcrypt_rounds: int = 10

    # Concurrencia optimista
    stock_update_max_retries: int = Field(
        default=5,
        description="Reintentos de compare-and-swap sobre el stock antes de reportar conflicto"
    )

    # SMTP (restablecimiento de contraseña)
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from: Optional[str] = None
    app_base_url: str = "http://localhost:4000"

    # Límites de inventario
    max_product_price: Decimal = Decimal("9999999999.99")
    max_product_stock: int = 1_000_000_000

    # File Upload
    max_image_size: int = 10 * 1024 * 1024  # 10MB
    allowed_image_formats: set = {"image/jpeg", "image/png", "image/webp", "image/jpg", "image/gif"}

    # CORS
    allowed_origins: List[str] = ["*"]

    # Server
    host: str = "0.0.0.0"
    port: int = 4000

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password)

settings = Settings()
