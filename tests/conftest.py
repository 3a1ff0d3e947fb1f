"""
Pytest fixtures for the ledger engine.

Sections:
    - Database Fixtures: in-memory SQLite shared across threads
    - Supplier Fixtures: suppliers with pre-loaded credit
    - Line Fixtures: builders for ledger line payloads
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from siteledger.core.database import Base
from siteledger.core.dependencies import get_db
from siteledger.main import app
from siteledger.models.ledger import LineCategory, PaymentMethod
from siteledger.schemas.ledger import LedgerLineCreate
from siteledger.services.supplier_service import create_supplier

PROJECT = "PRJ-TEST"
D0 = date(2026, 3, 2)
D1 = date(2026, 3, 3)
D2 = date(2026, 3, 4)


# ==========================================================================
# Database Fixtures
# ==========================================================================


@pytest.fixture
def engine():
    # StaticPool keeps one connection so the TestClient worker thread sees the same database.
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enforce foreign keys like PostgreSQL does.
    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ==========================================================================
# Supplier Fixtures
# ==========================================================================


@pytest.fixture
def supplier(db):
    """Supplier holding 40,000 of credit."""
    return create_supplier(db, name="Hardware Depot", phone="0700000001", initial_deposit=Decimal("40000"))


@pytest.fixture
def second_supplier(db):
    """Supplier holding 10,000 of credit."""
    return create_supplier(db, name="Sand & Gravel Ltd", initial_deposit=Decimal("10000"))


# ==========================================================================
# Line Fixtures
# ==========================================================================


def cash_line(amount, item="Masons", category=LineCategory.LABOR, **kwargs) -> LedgerLineCreate:
    return LedgerLineCreate(
        item=item,
        category=category,
        amount=Decimal(str(amount)),
        payment_method=PaymentMethod.CASH,
        **kwargs,
    )


def supplier_line(amount, supplier_id, item="Cement", category=LineCategory.MATERIALS, **kwargs) -> LedgerLineCreate:
    return LedgerLineCreate(
        item=item,
        category=category,
        amount=Decimal(str(amount)),
        payment_method=PaymentMethod.SUPPLIER,
        supplier_id=supplier_id,
        **kwargs,
    )
