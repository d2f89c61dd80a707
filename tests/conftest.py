import os
import tempfile
from datetime import datetime, timezone

_tmpdir = tempfile.mkdtemp(prefix="inventario-pos-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DEBUG"] = "true"
os.environ["BCRYPT_ROUNDS"] = "4"
for var in ("SMTP_HOST", "SMTP_USER", "SMTP_PASSWORD"):
    os.environ.pop(var, None)

import pytest
from fastapi.testclient import TestClient

from app.config.database import Base, SessionLocal, engine, init_db
from app.core.auth.security import create_access_token
from app.main import app
from app.shared.database.document_store import DocumentStore, new_doc_id
from app.shared.money import money_str

# 1x1 PNG válido
PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


@pytest.fixture(autouse=True)
def clean_database():
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def store(db_session):
    return DocumentStore(db_session)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    token = create_access_token("user:test", "admin@example.com", "Admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_product(store):
    def _make(name="Café molido", price="10.00", stock=5, **extra):
        now = datetime.now(timezone.utc).isoformat()
        doc = {
            "_id": new_doc_id("product"),
            "name": name,
            "description": "",
            "price": money_str(price),
            "stock": stock,
            "created_at": now,
            "updated_at": now,
            **extra
        }
        return store.products.insert(doc)["id"]
    return _make


@pytest.fixture
def make_customer(store):
    def _make(name="Ana Pérez", **extra):
        doc = {
            "_id": new_doc_id("customer"),
            "name": name,
            "email": extra.pop("email", ""),
            "phone": "",
            "address": "",
            "created_at": datetime.now(timezone.utc).isoformat(),
            **extra
        }
        return store.customers.insert(doc)["id"]
    return _make
