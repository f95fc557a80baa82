import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("FIRST_ADMIN_PASSWORD", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.security import TokenUtils
from app.main import app
from app.models import KPI, Base, Objective, ObjectiveKPILink, User

PASSWORD = "secret123"
PASSWORD_HASH = TokenUtils.get_password_hash(PASSWORD)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(username, role="employee", department=None, is_active=True):
        user = User(
            email=f"{username}@example.com",
            username=username,
            full_name=username.title(),
            hashed_password=PASSWORD_HASH,
            role=role,
            department=department,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user("admin", role="admin", department="Dirección")


@pytest.fixture
def manager(make_user):
    return make_user("manager", role="manager", department="Ventas")


@pytest.fixture
def employee(make_user):
    return make_user("employee", role="employee", department="Ventas")


@pytest.fixture
def other_employee(make_user):
    return make_user("other", role="employee", department="Finanzas")


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        tokens = TokenUtils.create_tokens_pair(
            user_id=user.id,
            email=user.email,
            role=user.role,
            department=user.department,
        )
        return {"Authorization": f"Bearer {tokens['access_token']}"}

    return _auth_headers


@pytest.fixture
def make_objective(db):
    def _make_objective(
        title,
        level,
        owner,
        parent=None,
        progress=0.0,
        year=2025,
        department=None,
        created_by=None,
    ):
        objective = Objective(
            title=title,
            level=level,
            owner_id=owner.id,
            parent_id=parent.id if parent is not None else None,
            department=department if department is not None else owner.department,
            year=year,
            progress_percentage=progress,
            created_by=created_by.id if created_by is not None else owner.id,
        )
        db.add(objective)
        db.commit()
        db.refresh(objective)
        return objective

    return _make_objective


@pytest.fixture
def make_kpi(db):
    def _make_kpi(owner, progress=None, title="KPI", year=2025, quarter="Q1"):
        kpi = KPI(
            user_id=owner.id,
            title=title,
            year=year,
            quarter=quarter,
            progress_percentage=progress,
        )
        db.add(kpi)
        db.commit()
        db.refresh(kpi)
        return kpi

    return _make_kpi


@pytest.fixture
def link(db):
    def _link(objective, kpi, weight=1.0):
        obj_link = ObjectiveKPILink(objective_id=objective.id, kpi_id=kpi.id, weight=weight)
        db.add(obj_link)
        db.commit()
        return obj_link

    return _link
