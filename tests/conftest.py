"""
Shared fixtures: in-memory SQLite per test, a seeded catalog, fake labelers
and a TestClient wired to both.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from commerce_tools.core.chatwoot_client import get_labeler
from commerce_tools.database import get_session
from commerce_tools.main import app
from commerce_tools.models.product import Product
from commerce_tools.repositories.cart_repo import CartRepository
from commerce_tools.repositories.product_repo import ProductRepository
from commerce_tools.services.cart_service import CartService


class RecordingLabeler:
    """Collects tag_conversation calls instead of talking to Chatwoot."""

    def __init__(self):
        self.calls: list[tuple[str, set[str]]] = []

    def tag_conversation(self, conversation_id, labels):
        self.calls.append((conversation_id, set(labels)))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def products(session):
    """
    1: Polo Shirt, stock 10
    2: Cap, stock 500
    3: Hoodie, not available
    """
    rows = [
        Product(
            id=1,
            name="Polo Shirt",
            description="Cotton polo for embroidery",
            category="shirts",
            size="M",
            color="navy",
            stock=10,
            available=True,
            price_50=5.0,
            price_100=4.5,
            price_200=4.0,
        ),
        Product(
            id=2,
            name="Cap",
            description="Baseball cap",
            category="accessories",
            size="one-size",
            color="black",
            stock=500,
            available=True,
            price_50=3.0,
            price_100=2.5,
            price_200=2.0,
        ),
        Product(
            id=3,
            name="Hoodie",
            description="Fleece hoodie",
            category="sweatshirts",
            size="L",
            color="grey",
            stock=50,
            available=False,
            price_50=12.0,
            price_100=11.0,
            price_200=10.0,
        ),
    ]
    for row in rows:
        session.add(row)
    session.commit()
    return rows


@pytest.fixture
def labeler():
    return RecordingLabeler()


@pytest.fixture
def cart_service(labeler):
    return CartService(CartRepository(), ProductRepository(), labeler)


@pytest.fixture
def client(session, labeler, products):
    def _get_session():
        yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_labeler] = lambda: labeler
    yield TestClient(app)
    app.dependency_overrides.clear()
