import os
import tempfile

os.environ.setdefault("DATABASE_URL", f"sqlite:///{tempfile.gettempdir()}/dealership_test.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dealership.auth import SESSION_COOKIE_NAME, create_access_token, hash_password, token_payload_for
from dealership.database import get_db
from dealership.main import app
from dealership.models import Base, BlogPost, Customer, User, UserRole, Vehicle

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)
    try:
        yield test_client
    finally:
        app.dependency_overrides.clear()


def _make_user(db, email, password, role):
    user = User(email=email, name=email.split("@")[0], password_hash=hash_password(password), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def admin_user(db):
    return _make_user(db, "admin@stmotors.de", "admin-password", UserRole.ADMIN.value)


@pytest.fixture()
def staff_user(db):
    return _make_user(db, "staff@stmotors.de", "staff-password", UserRole.STAFF.value)


def bearer(user):
    return {"Authorization": f"Bearer {create_access_token(token_payload_for(user))}"}


@pytest.fixture()
def admin_headers(admin_user):
    return bearer(admin_user)


@pytest.fixture()
def staff_headers(staff_user):
    return bearer(staff_user)


@pytest.fixture()
def session_cookie(admin_user):
    return {SESSION_COOKIE_NAME: create_access_token(token_payload_for(admin_user))}


@pytest.fixture()
def make_vehicle(db):
    counter = {"number": 0}

    def _make(**overrides):
        counter["number"] += 1
        number = overrides.pop("vehicle_number", counter["number"])
        fields = {
            "vehicle_number": number,
            "slug": f"bmw-320d-{number}",
            "manufacturer": "BMW",
            "model": "320d",
            "status": "active",
            "mileage": 50000,
            "selling_price": 20000.0,
        }
        fields.update(overrides)
        vehicle = Vehicle(**fields)
        db.add(vehicle)
        db.commit()
        db.refresh(vehicle)
        return vehicle

    return _make


@pytest.fixture()
def make_post(db):
    def _make(slug, status="published", published_at=None, title=None):
        post = BlogPost(
            slug=slug,
            title=title or slug.replace("-", " ").title(),
            content="Some content",
            status=status,
            published_at=published_at,
        )
        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    return _make


@pytest.fixture()
def make_customer(db):
    counter = {"number": 0}

    def _make(**overrides):
        counter["number"] += 1
        fields = {"customer_number": counter["number"], "last_name": "Mustermann"}
        fields.update(overrides)
        customer = Customer(**fields)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    return _make


def unreachable_db():
    unreachable = create_engine("sqlite:////nonexistent-dir/unreachable.db")
    session = sessionmaker(bind=unreachable)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def unreachable_store(client):
    app.dependency_overrides[get_db] = unreachable_db
    return client
