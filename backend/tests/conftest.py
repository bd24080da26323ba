import copy
import os
import tempfile

# must be set before wingshop.config is imported
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(tempfile.mkdtemp(), 'test.db')}"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from wingshop.adapters.mailer import MockMailer
from wingshop.adapters.mock_payment import MockPaymentGateway
from wingshop.adapters.mock_shipping import MockRateClient
from wingshop.db import SessionLocal, init_db
from wingshop.deps import get_mailer, get_payment_gateway, get_rate_client
from wingshop.main import app

PRODUCTS = [
    {
        "id": "prod_hot",
        "name": "Hot Sauce",
        "description": "Hot",
        "images": ["https://img.example.com/hot.png"],
        "metadata": {"bar_color": "fire", "flavor_description": "Cayenne and garlic"},
        "default_price": "price_hot_single",
        "active": True,
    },
    {
        "id": "prod_mild",
        "name": "Mild Sauce",
        "description": "Mild and buttery",
        "images": [],
        "metadata": {},
        "default_price": "price_mild_single",
        "active": True,
    },
    {
        "id": "prod_retired",
        "name": "Retired Sauce",
        "images": [],
        "metadata": {},
        "default_price": None,
        "active": False,
    },
]

PRICES = [
    {"id": "price_hot_single", "unit_amount": 899, "currency": "usd", "nickname": "single"},
    {"id": "price_hot_gallon", "unit_amount": 5999, "currency": "usd", "nickname": "gallon"},
    {"id": "price_mild_single", "unit_amount": 799, "currency": "usd", "nickname": "single"},
]

NY_ADDRESS = {
    "name": "Pat Buyer",
    "line1": "1 Main St",
    "city": "Albion",
    "state": "NY",
    "postal_code": "14411",
    "country": "US",
}


@pytest.fixture(autouse=True, scope="session")
def setup_db():
    init_db(reset=True)


@pytest.fixture
def gateway():
    return MockPaymentGateway(products=copy.deepcopy(PRODUCTS), prices=copy.deepcopy(PRICES))


@pytest.fixture
def rate_client():
    return MockRateClient()


@pytest.fixture
def mailer():
    return MockMailer()


@pytest.fixture
def client(gateway, rate_client, mailer):
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_rate_client] = lambda: rate_client
    app.dependency_overrides[get_mailer] = lambda: mailer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
