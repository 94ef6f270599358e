"""
Shared fixtures: an in-memory database per test, the seeded need catalog
and users on each subscription tier.
"""
import pytest
from datetime import date, timedelta
from sqlalchemy.pool import StaticPool

from needs_tracker.database import Database
from needs_tracker.models import Need, User
from needs_tracker.repositories.user_repository import UserRepository
from needs_tracker.services.need_catalog_service import seed_catalog


class FakeTransport:
    """Push transport that records sends instead of calling the gateway"""

    def __init__(self, results=None, configured=True):
        self.results = results or {}
        self.configured = configured
        self.sent = []

    def send(self, device_token, title, body, data=None):
        self.sent.append({"token": device_token, "title": title, "body": body, "data": data or {}})
        return self.results.get(device_token, {"success": True, "message_id": f"msg-{len(self.sent)}"})


@pytest.fixture
def database():
    """In-memory SQLite shared by every session of one test"""
    db = Database("sqlite://", poolclass=StaticPool)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def catalog(db_session):
    """Seeded need catalog"""
    seed_catalog(db_session)
    return db_session.query(Need).order_by(Need.need_order).all()


def _need(db_session, need_key, category):
    return db_session.query(Need).filter(Need.need_key == need_key, Need.category == category).one()


@pytest.fixture
def find_need(db_session, catalog):
    return lambda need_key, category: _need(db_session, need_key, category)


@pytest.fixture
def free_user(db_session) -> User:
    return UserRepository.get_or_create(db_session, "user-free", "Free")


@pytest.fixture
def premium_user(db_session) -> User:
    return UserRepository.get_or_create(db_session, "user-premium", "Premium")


@pytest.fixture
def coach_user(db_session) -> User:
    return UserRepository.get_or_create(db_session, "user-coach", "Coach")


@pytest.fixture
def today():
    # A Wednesday
    return date(2026, 3, 18)


@pytest.fixture
def yesterday(today):
    return today - timedelta(days=1)


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def make_transport():
    return FakeTransport
