import os
import tempfile

_default_test_secret = "test-jwt-secret-for-pytest-only-0000000000000000"
if len(os.environ.get("JWT_SECRET", "")) < 32:
    os.environ["JWT_SECRET"] = _default_test_secret

_test_db_dir = tempfile.mkdtemp(prefix="ems_api_tests_")
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL") or "sqlite:///" + os.path.join(_test_db_dir, "test.db")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["APP_TIMEZONE"] = "UTC"
os.environ["ENV"] = "test"

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config

from ems_api import database
from ems_api.database import Base, SessionLocal
from ems_api.deps.clock import get_now
from ems_api.main import app
from ems_api.services import auth_service, employee_service
from ems_api.services.auth_service import ROLE_EMPLOYEE, ROLE_HR, Identity

PROJECT_ROOT = Path(__file__).resolve().parents[2]

HR_NAME = "Admin"
HR_PIN = "1234"
EMPLOYEE_PIN = "1111"


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="session", autouse=True)
def _prepare_test_database() -> None:
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", TEST_DATABASE_URL)
    cfg.attributes["configure_logger"] = False

    command.upgrade(cfg, "head")

    database.configure_database()


def _clear_tables() -> None:
    with database.engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(scope="function", autouse=True)
def _truncate_tables_between_tests():
    _clear_tables()
    yield
    _clear_tables()


@pytest.fixture
def clock():
    frozen = FrozenClock(datetime(2024, 1, 2, 9, 0, tzinfo=timezone.utc))
    app.dependency_overrides[get_now] = frozen
    yield frozen
    app.dependency_overrides.pop(get_now, None)


@pytest.fixture
def employee_factory():
    counter = {"n": 0}

    def _create(name=None, pin=EMPLOYEE_PIN, email=None, department="Engineering"):
        counter["n"] += 1
        db = SessionLocal()
        try:
            row = employee_service.create_employee(
                db,
                name=name or f"Employee {counter['n']}",
                pin=pin,
                email=email,
                department=department,
            )
            db.commit()
            db.refresh(row)
            return row
        finally:
            db.close()

    return _create


@pytest.fixture
def hr_user_factory():
    def _create(name=HR_NAME, pin=HR_PIN):
        db = SessionLocal()
        try:
            row = auth_service.create_hr_user(db, name, pin)
            db.commit()
            db.refresh(row)
            return row
        finally:
            db.close()

    return _create


def bearer(identity: Identity) -> dict:
    return {"Authorization": f"Bearer {auth_service.create_access_token(identity)}"}


@pytest.fixture
def hr_headers(hr_user_factory) -> dict:
    user = hr_user_factory()
    return bearer(Identity(role=ROLE_HR, name=user.name, hr_user_id=user.id))


@pytest.fixture
def headers_for():
    def _headers(employee) -> dict:
        return bearer(Identity(role=ROLE_EMPLOYEE, name=employee.name, employee_id=employee.id))

    return _headers
