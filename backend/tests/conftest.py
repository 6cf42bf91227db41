"""
Pytest fixtures for the POS backend tests.

Every test runs against a fresh in-memory SQLite database shared by the
service layer and the FastAPI test client.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db, load_models
from main import app
from models.catalog import Category, Supplier, Customer
from models.product import Product
from models.users import User, Role
from utils.hashing import get_password_hash
from utils.tokenJWT import create_access_token

load_models()

PASSWORD = "Password123!"


@pytest.fixture(scope="session")
def engine():
    """One in-memory database for the whole run; StaticPool keeps it alive."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(engine):
    """Clean tables before each test, keep the schema."""
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())

    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Test client whose requests use the test session."""
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, email, role=Role.USER, is_active=True):
    user = User(
        email=email,
        password_hash=get_password_hash(PASSWORD),
        first_name=role.value.title(),
        last_name="Tester",
        role=role,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def cashier(db_session):
    return make_user(db_session, "cashier@possystem.com", Role.CASHIER)


@pytest.fixture
def manager(db_session):
    return make_user(db_session, "manager@possystem.com", Role.MANAGER)


@pytest.fixture
def admin(db_session):
    return make_user(db_session, "admin@possystem.com", Role.ADMIN)


@pytest.fixture
def cashier_headers(cashier):
    return auth_headers(cashier)


@pytest.fixture
def manager_headers(manager):
    return auth_headers(manager)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def category(db_session):
    category = Category(name="Beverages", description="Drinks")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def supplier(db_session):
    supplier = Supplier(name="Acme Wholesale", contact_person="Jan Kowalski", email="orders@acme-wholesale.com")
    db_session.add(supplier)
    db_session.commit()
    db_session.refresh(supplier)
    return supplier


@pytest.fixture
def customer(db_session):
    customer = Customer(first_name="Anna", last_name="Nowak", email="anna@example.com")
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer


def make_product(db, category, sku, *, name=None, price=25.0, quantity=10, min_quantity=2,
                 barcode=None, is_active=True, supplier=None):
    product = Product(
        name=name or f"Product {sku}",
        sku=sku,
        barcode=barcode,
        price=price,
        cost_price=round(price / 2, 2),
        quantity=quantity,
        min_quantity=min_quantity,
        is_active=is_active,
        category_id=category.id,
        supplier_id=supplier.id if supplier else None,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@pytest.fixture
def product(db_session, category, supplier):
    return make_product(db_session, category, "COF-001", name="Coffee", price=25.0, quantity=10,
                        barcode="5901234123457", supplier=supplier)
