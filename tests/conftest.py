"""Pytest configuration and fixtures."""

import os

# Keep the app's own engine off the filesystem and the limiter quiet
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from decimal import Decimal
from typing import Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from glowstock.db.base import Base
from glowstock.db.session import configure_sqlite, get_db
from glowstock.main import app
# Import all models to ensure they're registered with Base.metadata
from glowstock.models import *
from glowstock.models.bom import BomEntry
from glowstock.models.material import Material
from glowstock.models.packaging import AppliesTo, DeductionType, PackagingRule, PackagingRuleTarget
from glowstock.models.product import Product, ProductVariant

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    # Disable rate limiting during tests to avoid flaky failures
    from glowstock.core.rate_limit import limiter as global_limiter
    global_limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def catalog(db_session: Session) -> dict:
    """Materials, a product with a BOM, and a variant with its own BOM.

    serum (product, stock 20): 30 g base + 5 ml rose oil per unit
    serum 50ml (variant, stock 8): 50 g base + 8 ml rose oil per unit
    cream (product, stock 10): 50 g base per unit
    """
    box = Material(name="Shipping box", unit="pcs", stock_quantity=Decimal("100"), unit_price=Decimal("2"))
    tape = Material(name="Packing tape", unit="cm", stock_quantity=Decimal("500"), unit_price=Decimal("0.1"))
    tissue = Material(name="Tissue paper", unit="pcs", stock_quantity=Decimal("50"), unit_price=Decimal("0.5"))
    base = Material(name="Serum base", unit="g", stock_quantity=Decimal("1000"), unit_price=Decimal("0.5"))
    oil = Material(
        name="Rose oil", unit="ml", stock_quantity=Decimal("200"), unit_price=Decimal("1.5"),
        low_stock_threshold=Decimal("50"),
    )
    db_session.add_all([box, tape, tissue, base, oil])

    serum = Product(name="Rose Serum", slug="rose-serum", price=Decimal("25"), stock=20)
    cream = Product(name="Night Cream", slug="night-cream", price=Decimal("30"), stock=10)
    db_session.add_all([serum, cream])
    db_session.flush()

    serum_50 = ProductVariant(product_id=serum.id, name="50ml", price=Decimal("40"), stock=8)
    db_session.add(serum_50)
    db_session.flush()

    db_session.add_all([
        BomEntry(product_id=serum.id, material_id=base.id, quantity_per_unit=Decimal("30")),
        BomEntry(product_id=serum.id, material_id=oil.id, quantity_per_unit=Decimal("5")),
        BomEntry(variant_id=serum_50.id, material_id=base.id, quantity_per_unit=Decimal("50")),
        BomEntry(variant_id=serum_50.id, material_id=oil.id, quantity_per_unit=Decimal("8")),
        BomEntry(product_id=cream.id, material_id=base.id, quantity_per_unit=Decimal("50")),
    ])
    db_session.commit()

    return {
        "box": box.id,
        "tape": tape.id,
        "tissue": tissue.id,
        "base": base.id,
        "oil": oil.id,
        "serum": serum.id,
        "cream": cream.id,
        "serum_50": serum_50.id,
    }


@pytest.fixture
def packaging(db_session: Session, catalog: dict) -> dict:
    """Packaging rules: a box and tape for every order, tissue per serum item."""
    box_rule = PackagingRule(
        material_id=catalog["box"],
        deduction_type=DeductionType.PER_ORDER,
        applies_to=AppliesTo.ALL,
        quantity_single=Decimal("1"),
        quantity_multiple=Decimal("1"),
    )
    tape_rule = PackagingRule(
        material_id=catalog["tape"],
        deduction_type=DeductionType.PER_ORDER,
        applies_to=AppliesTo.ALL,
        quantity_single=Decimal("10"),
        quantity_multiple=Decimal("20"),
    )
    tissue_rule = PackagingRule(
        material_id=catalog["tissue"],
        deduction_type=DeductionType.PER_ITEM,
        applies_to=AppliesTo.SPECIFIC,
        quantity_single=Decimal("1"),
        quantity_multiple=Decimal("1"),
        targets=[PackagingRuleTarget(target_id=catalog["serum"])],
    )
    db_session.add_all([box_rule, tape_rule, tissue_rule])
    db_session.commit()
    return {"box": box_rule.id, "tape": tape_rule.id, "tissue": tissue_rule.id}
