import pytest

from app.shared.database.document_store import (
    DocumentNotFound, RevisionConflict, matches_selector
)


class TestCollectionWrites:

    def test_insert_assigns_revision_and_get_returns_document(self, store):
        saved = store.customers.insert({"_id": "customer:1", "name": "Ana"})

        doc = store.customers.get("customer:1")
        assert doc["_id"] == "customer:1"
        assert doc["_rev"] == saved["rev"]
        assert doc["_rev"].startswith("1-")
        assert doc["name"] == "Ana"

    def test_update_with_current_revision_bumps_generation(self, store):
        store.customers.insert({"_id": "customer:1", "name": "Ana"})
        doc = store.customers.get("customer:1")

        doc["name"] = "Ana María"
        saved = store.customers.insert(doc)

        assert saved["rev"].startswith("2-")
        assert store.customers.get("customer:1")["name"] == "Ana María"

    def test_update_with_stale_revision_is_rejected(self, store):
        store.customers.insert({"_id": "customer:1", "name": "Ana"})
        stale = store.customers.get("customer:1")
        fresh = dict(stale)
        fresh["name"] = "Primera"
        store.customers.insert(fresh)

        stale["name"] = "Segunda"
        with pytest.raises(RevisionConflict):
            store.customers.insert(stale)
        assert store.customers.get("customer:1")["name"] == "Primera"

    def test_creating_existing_id_is_a_conflict(self, store):
        store.customers.insert({"_id": "customer:1", "name": "Ana"})
        with pytest.raises(RevisionConflict):
            store.customers.insert({"_id": "customer:1", "name": "Otra"})

    def test_get_missing_document(self, store):
        with pytest.raises(DocumentNotFound):
            store.products.get("product:nope")

    def test_destroy_requires_current_revision(self, store):
        saved = store.products.insert({"_id": "product:1", "name": "Té"})
        store.products.insert({**store.products.get("product:1"), "name": "Té verde"})

        with pytest.raises(RevisionConflict):
            store.products.destroy("product:1", saved["rev"])

        current = store.products.get("product:1")
        store.products.destroy("product:1", current["_rev"])
        with pytest.raises(DocumentNotFound):
            store.products.get("product:1")

    def test_update_with_unknown_id_is_not_found(self, store):
        with pytest.raises(DocumentNotFound):
            store.products.insert({"_id": "product:ghost", "_rev": "1-abc", "name": "x"})

    def test_collections_are_isolated(self, store):
        store.products.insert({"_id": "shared:1", "name": "producto"})
        store.customers.insert({"_id": "shared:1", "name": "cliente"})

        assert store.products.get("shared:1")["name"] == "producto"
        assert store.customers.get("shared:1")["name"] == "cliente"


class TestConditionalUpdate:

    def test_update_retries_after_conflict(self, store):
        store.products.insert({"_id": "product:1", "stock": 5})
        calls = []

        def mutate(doc):
            calls.append(doc["_rev"])
            if len(calls) == 1:
                # Otro escritor gana la carrera entre la lectura y la escritura
                store.products.insert({**store.products.get("product:1"), "stock": 4})
            doc["stock"] = doc["stock"] - 1

        saved = store.products.update("product:1", mutate)

        assert len(calls) == 2
        assert saved["stock"] == 3
        assert store.products.get("product:1")["stock"] == 3

    def test_update_gives_up_after_max_attempts(self, store):
        store.products.insert({"_id": "product:1", "stock": 5})

        def always_loses(doc):
            store.products.insert({**store.products.get("product:1")})
            doc["stock"] = 0

        with pytest.raises(RevisionConflict):
            store.products.update("product:1", always_loses, max_attempts=3)
        assert store.products.get("product:1")["stock"] == 5


class TestFind:

    @pytest.fixture
    def sales(self, store):
        store.sales.insert({"_id": "sale:1", "customer_id": "customer:1", "customer_name": "Ana Pérez", "total": "10.00", "created_at": "2024-01-01T10:00:00+00:00"})
        store.sales.insert({"_id": "sale:2", "customer_id": "guest", "customer_name": "Guest", "total": "5.00", "created_at": "2024-01-02T10:00:00+00:00"})
        store.sales.insert({"_id": "sale:3", "customer_id": "guest", "customer_name": "ana (mostrador)", "total": "7.50", "created_at": "2024-01-03T10:00:00+00:00"})
        return store.sales

    def test_empty_selector_returns_everything(self, sales):
        assert len(sales.find({})) == 3

    def test_equality_selector(self, sales):
        found = sales.find({"customer_id": "guest"})
        assert {d["_id"] for d in found} == {"sale:2", "sale:3"}

    def test_or_with_case_insensitive_regex(self, sales):
        found = sales.find({
            "$or": [
                {"customer_id": "customer:1"},
                {"customer_name": {"$regex": "(?i)ana"}}
            ]
        })
        assert {d["_id"] for d in found} == {"sale:1", "sale:3"}

    def test_limit_and_sort(self, sales):
        found = sales.find({}, limit=2, sort_by="created_at", descending=True)
        assert [d["_id"] for d in found] == ["sale:3", "sale:2"]

    def test_equality_with_limit_keeps_insertion_order(self, sales):
        assert [d["_id"] for d in sales.find({"customer_id": "guest"}, limit=1)] == ["sale:2"]
        assert [d["_id"] for d in sales.find({}, limit=2)] == ["sale:1", "sale:2"]

    def test_equality_on_accented_text(self, sales):
        found = sales.find({"customer_name": "Ana Pérez"})
        assert [d["_id"] for d in found] == ["sale:1"]

    def test_equality_on_missing_field(self, sales):
        assert sales.find({"coupon": "X"}) == []

    def test_equality_combined_with_operators(self, sales):
        found = sales.find({"customer_id": "guest", "customer_name": {"$regex": "(?i)^ana"}}, limit=1)
        assert [d["_id"] for d in found] == ["sale:3"]

    def test_non_string_equality(self, store):
        store.products.insert({"_id": "product:1", "name": "Té", "stock": 3})
        store.products.insert({"_id": "product:2", "name": "Pan", "stock": "3"})

        assert [d["_id"] for d in store.products.find({"stock": 3})] == ["product:1"]
        assert [d["_id"] for d in store.products.find({"stock": "3"})] == ["product:2"]


def test_selector_operators():
    doc = {"stock": 3, "name": "Café", "tags": "x"}

    assert matches_selector(doc, {"stock": {"$gt": 2, "$lte": 3}})
    assert not matches_selector(doc, {"stock": {"$lt": 3}})
    assert matches_selector(doc, {"name": {"$in": ["Té", "Café"]}})
    assert matches_selector(doc, {"name": {"$nin": ["Té"]}})
    assert matches_selector(doc, {"photo_base64": {"$exists": False}})
    assert not matches_selector(doc, {"tags": {"$exists": False}})
    assert matches_selector(doc, {"$and": [{"stock": 3}, {"name": {"$ne": "Té"}}]})
    assert not matches_selector(doc, {"missing": "value"})

    with pytest.raises(ValueError):
        matches_selector(doc, {"stock": {"$near": 1}})
