import os
import tempfile

os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOADS_DIR"] = tempfile.mkdtemp(prefix="florist-uploads-")
os.environ.pop("GOOGLE_TRANSLATE_API_KEY", None)
os.environ.pop("TOKEN", None)
os.environ.pop("CHAT_ID", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from florist import auth, crud, models
from florist.database import Base, get_db
from florist.main import app
from florist.translation import TranslationProvider, get_translation_provider

engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingProvider(TranslationProvider):
    """Translates deterministically and remembers every request."""

    name = "recording"

    def __init__(self):
        super().__init__()
        self.requests = []

    def _translate(self, text, target_language):
        self.requests.append((text, target_language))
        return f"[{target_language}] {text}"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def provider():
    return RecordingProvider()


@pytest.fixture
def client(db, provider):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_translation_provider] = lambda: provider
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin(db):
    return crud.create_or_update_admin(db, username="admin", password="admin123")


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {auth.create_user_token(admin)}"}


@pytest.fixture
def customer_headers(db):
    user = models.User(username="visitor", hashed_password=auth.get_password_hash("secret"), role="customer")
    db.add(user)
    db.commit()
    db.refresh(user)
    return {"Authorization": f"Bearer {auth.create_user_token(user)}"}


@pytest.fixture
def category(client, admin_headers):
    response = client.post(
        "/api/categories",
        json={"name": "İç Mekan Bitkileri", "description": "Ev için bitkiler", "display_order": 1},
        headers=admin_headers,
    )
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def make_plant(client, admin_headers, category):
    def _make_plant(**fields):
        data = {"name": "Paşa Kılıcı", "category": str(category["id"]), "price": "29.99", "stock_quantity": "10"}
        data.update({key: str(value) for key, value in fields.items()})
        response = client.post("/api/plants", data=data, headers=admin_headers)
        assert response.status_code == 200, response.text
        return response.json()
    return _make_plant


def order_payload(**overrides):
    payload = {
        "customer_name": "Ayşe Yılmaz",
        "customer_email": "ayse@example.com",
        "customer_phone": "+994 50 123 45 67",
        "delivery_type": "express",
        "delivery_address": "Nizami küçəsi 10, mənzil 5, Bakı AZ1000, Azərbaycan",
        "order_items": [
            {"name": "Snake Plant", "name_en": "Snake Plant", "quantity": 2, "price": 29.99,
             "image_url": "/uploads/plants/snake.jpg"},
        ],
        "subtotal": 59.98,
        "delivery_fee": 9.99,
        "total": 69.97,
        "notes": "Ring the bell twice",
    }
    payload.update(overrides)
    return payload
