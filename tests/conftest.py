"""Test fixtures for the shop service tests."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from shop_service.database import make_engine, make_session_factory
from shop_service.main import create_app
from shop_service.models import Base, Category, Product
from shop_service.order_engine import OrderEngine


@pytest.fixture
def db_engine(tmp_path):
    """A file-backed SQLite engine with the schema created.

    A file (not ``:memory:``) so that every pooled connection, including the
    ones opened by concurrent threads, sees the same database.
    """
    engine = make_engine(f"sqlite:///{tmp_path / 'shop.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return make_session_factory(db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def catalog(session_factory):
    """Seed one category and two products.

    Returns:
        dict: ids of the seeded rows.
    """
    session = session_factory()
    try:
        books = Category(name="Books", description="Paper and ink")
        session.add(books)
        session.flush()
        novel = Product(category_id=books.id, name="Novel", description="A long story", price=Decimal("9.99"), stock=10)
        atlas = Product(category_id=books.id, name="Atlas", description="Maps", price=Decimal("25.00"), stock=5)
        session.add_all([novel, atlas])
        session.commit()
        return {"category_id": books.id, "novel_id": novel.id, "atlas_id": atlas.id}
    finally:
        session.close()


@pytest.fixture
def order_engine(session_factory):
    return OrderEngine(session_factory)


@pytest.fixture
def client(db_engine):
    """A TestClient whose lifespan serves from the test database."""
    with TestClient(create_app(engine=db_engine)) as test_client:
        yield test_client

