from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal

# ==================== VENTAS ====================

class SalesTotalRow(BaseModel):
    sale_id: str
    customer_name: str
    created_at: Optional[str]
    total: Decimal

class SalesTotalReport(BaseModel):
    rows: List[SalesTotalRow]
    grand_total: Decimal

# ==================== STOCK ====================

class StockRow(BaseModel):
    product_id: str
    name: str
    price: Decimal
    stock: int
    stock_value: Decimal

class StockReport(BaseModel):
    rows: List[StockRow]
    total_units: int
    total_value: Decimal

# ==================== COMPRAS POR CLIENTE ====================

class CustomerPurchaseRow(BaseModel):
    sale_id: str
    created_at: Optional[str]
    products: str
    quantity: int
    total: Decimal

class CustomerPurchasesReport(BaseModel):
    customer_ref: str
    customer_name: str
    rows: List[CustomerPurchaseRow]
    total_quantity: int
    total_purchases: Decimal

# ==================== DOCUMENTOS PDF ====================

class InvoiceLine(BaseModel):
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    total: Decimal
    image: Optional[bytes] = None

class Invoice(BaseModel):
    sale_id: str
    customer_id: str
    customer_name: str
    created_at: Optional[str]
    lines: List[InvoiceLine]
    total: Decimal

class InventoryEntry(BaseModel):
    product_id: str
    name: str
    description: str
    price: Decimal
    stock: int
    image: Optional[bytes] = None

class InventoryReport(BaseModel):
    products: List[InventoryEntry]
