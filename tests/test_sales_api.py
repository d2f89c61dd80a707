import threading
from decimal import Decimal

from app.modules.products.ledger import ProductStockLedger
from tests.conftest import PNG_BASE64


def post_sale(client, items, **customer):
    return client.post("/api/sales", json={"items": items, **customer})


def test_create_sale(client, store, make_product, make_customer):
    product_id = make_product(price="10.00", stock=5)
    customer_id = make_customer(name="Ana Pérez")

    response = post_sale(client, [{"product_id": product_id, "quantity": 2}], customer_id=customer_id)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Venta realizada"
    assert Decimal(str(body["total"])) == Decimal("20.00")
    assert store.products.get(product_id)["stock"] == 3

    sale = client.get(f"/api/sales/{body['sale_id']}").json()
    assert sale["customer_name"] == "Ana Pérez"
    assert sale["items"][0]["quantity"] == 2


def test_insufficient_stock_response(client, store, make_product):
    product_id = make_product(name="Harina", stock=1)

    response = post_sale(client, [{"product_id": product_id, "quantity": 3}])

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "insufficient_stock"
    assert body["product"] == "Harina"
    assert body["requested"] == 3
    assert body["available"] == 1
    assert store.products.get(product_id)["stock"] == 1


def test_invalid_quantity_response(client, make_product):
    product_id = make_product(stock=5)

    response = post_sale(client, [{"product_id": product_id, "quantity": "abc"}])

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_quantity"


def test_missing_items(client):
    response = client.post("/api/sales", json={})
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


def test_unknown_product_response(client):
    response = post_sale(client, [{"product_id": "product:missing", "quantity": 1}])
    assert response.status_code == 404
    assert response.json()["code"] == "product_not_found"


def test_list_sales_newest_first(client, make_product):
    product_id = make_product(stock=10)
    first = post_sale(client, [{"product_id": product_id, "quantity": 1}]).json()["sale_id"]
    second = post_sale(client, [{"product_id": product_id, "quantity": 1}]).json()["sale_id"]

    sales = client.get("/api/sales").json()
    assert [s["id"] for s in sales] == [second, first]


def test_unknown_sale(client):
    assert client.get("/api/sales/sale:missing").status_code == 404
    assert client.get("/api/sales/sale:missing/invoice").status_code == 404


def test_invoice_pdf(client, make_product):
    with_photo = make_product(name="Con foto", price="3.00", stock=5, photo_base64=PNG_BASE64, photo_mime="image/png")
    without_photo = make_product(name="Sin foto", price="1.25", stock=5)
    sale_id = post_sale(client, [
        {"product_id": with_photo, "quantity": 1},
        {"product_id": without_photo, "quantity": 2}
    ]).json()["sale_id"]

    response = client.get(f"/api/sales/{sale_id}/invoice")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    assert sale_id.replace(":", "_") in response.headers["content-disposition"]


def test_invoice_after_product_deleted(client, auth_headers, make_product):
    product_id = make_product(name="Descontinuado", stock=5, photo_base64=PNG_BASE64, photo_mime="image/png")
    sale_id = post_sale(client, [{"product_id": product_id, "quantity": 1}]).json()["sale_id"]
    client.delete(f"/api/products/{product_id}", headers=auth_headers)

    response = client.get(f"/api/sales/{sale_id}/invoice")

    assert response.status_code == 200
    assert response.content.startswith(b"%PDF")


def test_concurrent_requests_for_last_unit(client, store, make_product, monkeypatch):
    product_id = make_product(price="5.00", stock=1)
    barrier = threading.Barrier(2, timeout=10)
    lock = threading.Lock()
    calls = []
    original = ProductStockLedger.compare_and_swap_stock

    def cas_after_both_read(self, pid, revision, new_stock):
        # Las dos peticiones leyeron stock=1 antes de que alguna escriba
        with lock:
            calls.append(pid)
            first_round = len(calls) <= 2
        if first_round:
            barrier.wait()
        return original(self, pid, revision, new_stock)

    monkeypatch.setattr(ProductStockLedger, "compare_and_swap_stock", cas_after_both_read)

    responses = []

    def send():
        response = post_sale(client, [{"product_id": product_id, "quantity": 1}])
        with lock:
            responses.append(response)

    threads = [threading.Thread(target=send) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert sorted(r.status_code for r in responses) == [201, 400]
    rejected = next(r for r in responses if r.status_code == 400)
    assert rejected.json()["code"] == "insufficient_stock"
    assert store.products.get(product_id)["stock"] == 0
    assert len(client.get("/api/sales").json()) == 1
