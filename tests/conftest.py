from datetime import datetime, timedelta, timezone
from decimal import Decimal

import jwt
import pytest
from fastapi.testclient import TestClient

from storefront.api.deps import build_services, build_sql_services
from storefront.core.config import Settings
from storefront.db import models
from storefront.db.session import Base, make_engine, make_session_factory
from storefront.domain import Product, ShippingAddress
from storefront.main import create_app
from storefront.store import MemoryCatalog, MemoryOrderStore

JWT_SECRET = "test-secret"

PRODUCTS = [
    Product(id="P1", seller_id="seller-1", name="Linen Shirt", price=Decimal("100.00"), stock_quantity=5),
    Product(id="P2", seller_id="seller-1", name="Canvas Tote", price=Decimal("35.50"), stock_quantity=10),
    Product(id="P3", seller_id="seller-2", name="Leather Belt", price=Decimal("49.90"), stock_quantity=3),
    Product(id="P4", seller_id="seller-2", name="Retired Cap", price=Decimal("20.00"), stock_quantity=8, is_active=False),
]


class TickingClock:
    """Returns a strictly increasing time on every call."""

    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


class RecordingEvents:
    def __init__(self):
        self.events = []

    def emit(self, event):
        self.events.append(event)

    def close(self):
        pass


@pytest.fixture()
def clock():
    return TickingClock()


@pytest.fixture()
def events():
    return RecordingEvents()


@pytest.fixture()
def catalog():
    return MemoryCatalog(PRODUCTS)


@pytest.fixture()
def store(catalog, clock):
    return MemoryOrderStore(catalog, clock=clock)


@pytest.fixture()
def address():
    return ShippingAddress(
        street="Rua das Flores",
        number="120",
        neighborhood="Centro",
        city="Curitiba",
        state="PR",
        postal_code="80010-000",
        country="BR",
        recipient="Ana Souza",
        phone="+55 41 99999-0000",
    )


@pytest.fixture()
def settings():
    return Settings(
        POSTGRES_DSN="sqlite://",
        JWT_SECRET=JWT_SECRET,
        METRICS_ENABLED=False,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture()
def sessions(settings):
    engine = make_engine(settings)
    Base.metadata.create_all(engine)
    factory = make_session_factory(engine)
    with factory() as db, db.begin():
        db.add_all(
            models.Product(
                id=p.id, seller_id=p.seller_id, name=p.name, price=p.price,
                stock_quantity=p.stock_quantity, is_active=p.is_active,
            )
            for p in PRODUCTS
        )
    yield factory
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def client(settings, sessions):
    app = create_app(settings, build_sql_services(settings, sessions))
    return TestClient(app)


@pytest.fixture()
def memory_client(settings, catalog, store):
    app = create_app(settings, build_services(settings, catalog, store))
    return TestClient(app)


def make_token(sub, role="customer", secret=JWT_SECRET, token_type="access"):
    payload = {
        "sub": sub,
        "role": role,
        "type": token_type,
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth(sub, role="customer"):
    return {"Authorization": f"Bearer {make_token(sub, role)}"}
