import os
import tempfile
from pathlib import Path

_tmpdir = Path(tempfile.mkdtemp(prefix="dogspots_test_"))
_db_path = _tmpdir / "test.db"

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_db_path.as_posix()}")
os.environ.setdefault("APP_SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_DIR", str(_tmpdir / "logs"))

import pytest
from fastapi.testclient import TestClient

import dogspots.models
from dogspots.db.base import Base
from dogspots.db.session import engine, SessionLocal
from dogspots.main import create_app
from dogspots.core.rate_limit import _reset_for_tests
from dogspots.models.enums import UserRole
from dogspots.models.users import User


@pytest.fixture()
def clean_db():
    _reset_for_tests()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db(clean_db):
    session = SessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def client(clean_db):
    app = create_app()
    with TestClient(app) as c:
        yield c


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(client, username: str, password: str = "password123") -> str:
    r = client.post("/auth/register", json={"username": username, "password": password})
    assert r.status_code == 201, r.text
    return r.json()["access_token"]


@pytest.fixture()
def user_headers(client):
    return auth_header(register(client, "doglover"))


@pytest.fixture()
def admin_headers(client, db):
    token = register(client, "admin")
    user = db.query(User).filter_by(username="admin").one()
    user.role = UserRole.admin.value
    db.commit()
    return auth_header(token)
