import os

# Configure before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["DEEPSEEK_API_KEY"] = ""

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models.drug import Drug
from models.users import User, ROLE_ADMIN, ROLE_PHARMACIST
from utils.hashing import get_password_hash
from utils.tokenJWT import token_for_user


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, username, role=ROLE_PHARMACIST, password="secret", name=None):
    user = User(
        username=username,
        password_hash=get_password_hash(password),
        name=name or username.title(),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_drug(db, creator, **overrides):
    data = dict(
        code="D100",
        name="Paracetamol 500mg",
        category="Pain Relief",
        manufacturer="Acme Pharma",
        price=Decimal("4.50"),
        stock=10,
        min_stock_threshold=5,
        expiry_date=date(2030, 1, 31),
        description="Analgesic and antipyretic.",
    )
    data.update(overrides)
    drug = Drug(created_by_id=creator.id, **data)
    db.add(drug)
    db.commit()
    db.refresh(drug)
    return drug


def bearer(user):
    return {"Authorization": f"Bearer {token_for_user(user)}"}


@pytest.fixture
def admin(db):
    return make_user(db, "admin", ROLE_ADMIN, name="Store Admin")


@pytest.fixture
def pharmacist(db):
    return make_user(db, "pharm", ROLE_PHARMACIST, name="Duty Pharmacist")


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture
def pharm_headers(pharmacist):
    return bearer(pharmacist)
