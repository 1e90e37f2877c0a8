"""
Soft CRUD Test Configuration

Fixtures build the sample order tables in in-memory SQLite and hand each test a
store and repository over a session whose commits are thrown away afterwards.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from soft_crud.models import Base
from soft_crud.repository import SoftCrudRepository
from soft_crud.store import SqlAlchemyStore

from sample_models import Order


@pytest.fixture(scope="session")
def db_engine():
    """In-memory SQLite with the soft-deletable sample tables, shared by the whole run"""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """
    Session joined to an outer transaction on one connection.

    The store commits as usual; those commits land inside the outer
    transaction, which is rolled back when the test ends, so every test starts
    from empty order tables.
    """
    connection = db_engine.connect()
    transaction = connection.begin()

    SessionLocal = sessionmaker(bind=connection)
    session = SessionLocal()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def standalone_session():
    """Session on a private in-memory database with real commits and rollbacks"""
    engine = create_engine("sqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine)()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture
def order_store(db_session: Session) -> SqlAlchemyStore:
    return SqlAlchemyStore(db_session, Order)


@pytest.fixture
def order_repo(order_store: SqlAlchemyStore) -> SoftCrudRepository:
    """Repository without an identity accessor"""
    return SoftCrudRepository(order_store)


@pytest.fixture
def make_order(db_session: Session):
    """Insert an order directly through the session"""

    def _make_order(customer: str = "acme", status: str = "pending", total: int = 0, **fields) -> Order:
        order = Order(customer=customer, status=status, total=total, **fields)
        db_session.add(order)
        db_session.commit()
        db_session.refresh(order)
        return order

    return _make_order
