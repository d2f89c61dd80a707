import threading
from decimal import Decimal

import pytest

from app.config.database import SessionLocal
from app.core.exceptions import (
    CustomerNotFound, InsufficientStock, InvalidQuantity, ProductNotFound,
    StockConflict, ValidationError
)
from app.modules.sales.schemas import SaleCreateRequest, SaleItemRequest
from app.modules.sales.service import SalesService
from app.shared.database.document_store import RevisionConflict


def sale(*items, customer_id=None, customer_name=None):
    return SaleCreateRequest(
        customer_id=customer_id,
        customer_name=customer_name,
        items=[SaleItemRequest(product_id=pid, quantity=qty) for pid, qty in items]
    )


@pytest.fixture
def service(db_session):
    return SalesService(db_session)


def stock_of(store, product_id):
    return store.products.get(product_id)["stock"]


# ==================== VENTA EXITOSA ====================

def test_sale_decrements_stock_and_records_total(service, store, make_product):
    p1 = make_product(price="10.00", stock=5)

    result = service.create_sale(sale((p1, 2)))

    assert result["message"] == "Venta realizada"
    assert result["total"] == Decimal("20.00")
    assert stock_of(store, p1) == 3

    saved = store.sales.get(result["sale_id"])
    assert saved["total"] == "20.00"
    assert saved["items"] == [{
        "product_id": p1,
        "product_name": "Café molido",
        "quantity": 2,
        "unit_price": "10.00",
        "total": "20.00"
    }]


def test_total_is_sum_of_line_totals(service, store, make_product):
    p1 = make_product(name="Pan", price="0.10", stock=10)
    p2 = make_product(name="Leche", price="0.20", stock=10)

    result = service.create_sale(sale((p1, 3), (p2, 1)))

    saved = store.sales.get(result["sale_id"])
    line_sum = sum(Decimal(item["total"]) for item in saved["items"])
    assert line_sum == Decimal(saved["total"]) == result["total"] == Decimal("0.50")


def test_duplicate_lines_are_validated_together(service, store, make_product):
    p1 = make_product(stock=3)

    with pytest.raises(InsufficientStock) as exc_info:
        service.create_sale(sale((p1, 2), (p1, 2)))

    assert exc_info.value.requested == 4
    assert exc_info.value.available == 3
    assert stock_of(store, p1) == 3


def test_duplicate_lines_are_decremented_once_each(service, store, make_product):
    p1 = make_product(price="1.00", stock=5)

    result = service.create_sale(sale((p1, 2), (p1, 3)))

    assert stock_of(store, p1) == 0
    assert result["total"] == Decimal("5.00")
    assert len(store.sales.get(result["sale_id"])["items"]) == 2


def test_quantity_given_as_numeric_string(service, store, make_product):
    p1 = make_product(stock=5)

    service.create_sale(sale((p1, "2")))

    assert stock_of(store, p1) == 3


# ==================== VALIDACIÓN ====================

@pytest.mark.parametrize("quantity", [0, -1, "abc", 1.5, None, True])
def test_invalid_quantity_mutates_nothing(service, store, make_product, quantity):
    p1 = make_product(stock=5)
    p2 = make_product(stock=5)

    with pytest.raises(InvalidQuantity):
        service.create_sale(sale((p1, 1), (p2, quantity)))

    assert stock_of(store, p1) == 5
    assert stock_of(store, p2) == 5
    assert store.sales.find({}) == []


def test_empty_items_rejected(service, store):
    with pytest.raises(ValidationError):
        service.create_sale(sale())
    assert store.sales.find({}) == []


def test_unknown_product_mutates_nothing(service, store, make_product):
    p1 = make_product(stock=5)

    with pytest.raises(ProductNotFound):
        service.create_sale(sale((p1, 1), ("product:missing", 1)))

    assert stock_of(store, p1) == 5
    assert store.sales.find({}) == []


def test_second_line_insufficient_leaves_first_untouched(service, store, make_product):
    p1 = make_product(name="Arroz", stock=5)
    p2 = make_product(name="Frijol", stock=1)

    with pytest.raises(InsufficientStock) as exc_info:
        service.create_sale(sale((p1, 2), (p2, 2)))

    assert exc_info.value.product_name == "Frijol"
    assert stock_of(store, p1) == 5
    assert stock_of(store, p2) == 1
    assert store.sales.find({}) == []


# ==================== CLIENTE ====================

def test_guest_sale_defaults(service, store, make_product):
    p1 = make_product(stock=5)

    result = service.create_sale(sale((p1, 1)))

    saved = store.sales.get(result["sale_id"])
    assert saved["customer_id"] == "guest"
    assert saved["customer_name"] == "Guest"


def test_customer_name_is_denormalized(service, store, make_product, make_customer):
    p1 = make_product(stock=5)
    customer_id = make_customer(name="Luis Gómez")

    result = service.create_sale(sale((p1, 1), customer_id=customer_id))

    saved = store.sales.get(result["sale_id"])
    assert saved["customer_id"] == customer_id
    assert saved["customer_name"] == "Luis Gómez"


def test_unknown_customer_is_rejected(service, store, make_product):
    p1 = make_product(stock=5)

    with pytest.raises(CustomerNotFound):
        service.create_sale(sale((p1, 1), customer_id="customer:missing"))
    assert stock_of(store, p1) == 5


# ==================== COMPENSACIÓN ====================

def test_failed_sale_write_restores_stock(service, store, make_product, monkeypatch):
    p1 = make_product(stock=5)
    p2 = make_product(stock=4)

    def broken_create_sale(doc):
        raise RuntimeError("disco lleno")

    monkeypatch.setattr(service.repository, "create_sale", broken_create_sale)

    with pytest.raises(RuntimeError):
        service.create_sale(sale((p1, 2), (p2, 1)))

    assert stock_of(store, p1) == 5
    assert stock_of(store, p2) == 4


def test_exhausted_retries_restore_earlier_lines(service, store, make_product):
    p1 = make_product(stock=5)
    p2 = make_product(stock=5)
    original = service.ledger.compare_and_swap_stock

    def conflicts_on_second_product(pid, revision, new_stock):
        if pid == p2:
            raise RevisionConflict("products", pid)
        return original(pid, revision, new_stock)

    service.ledger.compare_and_swap_stock = conflicts_on_second_product

    with pytest.raises(StockConflict):
        service.create_sale(sale((p1, 2), (p2, 1)))

    assert stock_of(store, p1) == 5
    assert stock_of(store, p2) == 5
    assert store.sales.find({}) == []


# ==================== CONCURRENCIA ====================

def test_concurrent_sales_of_last_unit(store, make_product):
    product_id = make_product(price="5.00", stock=1)
    barrier = threading.Barrier(2, timeout=10)
    outcomes = []
    lock = threading.Lock()

    def run_sale():
        session = SessionLocal()
        try:
            service = SalesService(session)
            original = service.ledger.compare_and_swap_stock
            waited = []

            def cas_after_both_read(pid, revision, new_stock):
                # Ambas ventas leyeron stock=1 antes de que alguna escriba
                if not waited:
                    waited.append(True)
                    barrier.wait()
                return original(pid, revision, new_stock)

            service.ledger.compare_and_swap_stock = cas_after_both_read
            try:
                service.create_sale(sale((product_id, 1)))
                outcome = "ok"
            except InsufficientStock:
                outcome = "insufficient"
            with lock:
                outcomes.append(outcome)
        finally:
            session.close()

    threads = [threading.Thread(target=run_sale) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert sorted(outcomes) == ["insufficient", "ok"]
    assert stock_of(store, product_id) == 0
    assert len(store.sales.find({})) == 1


# ==================== CONSULTAS ====================

def test_list_and_get_sales(service, make_product):
    p1 = make_product(price="2.50", stock=10)
    first = service.create_sale(sale((p1, 1)))
    second = service.create_sale(sale((p1, 2), customer_name="Mostrador"))

    sales = service.list_sales()
    assert {s.id for s in sales} == {first["sale_id"], second["sale_id"]}

    detail = service.get_sale(second["sale_id"])
    assert detail.customer_name == "Mostrador"
    assert detail.total == Decimal("5.00")
    assert detail.items[0].quantity == 2


# ==================== IMPORTES GRANDES ====================

def test_large_line_totals_are_exact(service, store, make_product):
    price = Decimal("99999999999999999999.99")
    p1 = make_product(price=str(price), stock=10**9)

    result = service.create_sale(sale((p1, 10**9)))

    expected = Decimal("99999999999999999999990000000000.00")
    assert result["total"] == expected
    saved = store.sales.get(result["sale_id"])
    assert Decimal(saved["items"][0]["total"]) == expected
    assert Decimal(saved["total"]) == expected
    assert stock_of(store, p1) == 0
