import os
import tempfile

# Settings are read at import time, so they must be in place before servicedome is imported
os.environ["CACHE_ENABLED"] = "false"
os.environ["PUSH_DISPATCH_MODE"] = "disabled"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(tempfile.gettempdir(), 'servicedome-import.db')}"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from servicedome.config import JWT_SECRET  # noqa: E402
from servicedome.database import Base, build_engine, get_db  # noqa: E402
from servicedome.domain.accounts.schemas import AccountCreate, SubscriptionUpdate  # noqa: E402
from servicedome.domain.accounts.service import AccountService  # noqa: E402
from servicedome.domain.notifications.dispatch import (  # noqa: E402
    PushDispatcher,
    get_push_dispatcher,
)
from servicedome.domain.notifications.service import NotificationService  # noqa: E402
from servicedome.domain.pages.schemas import PageCreate  # noqa: E402
from servicedome.domain.pages.service import PageService  # noqa: E402
from servicedome.domain.timeslots.schemas import SlotCreate  # noqa: E402
from servicedome.domain.timeslots.service import TimeSlotService  # noqa: E402
from servicedome.main import app  # noqa: E402
from servicedome.models import SUBSCRIPTION_ACTIVE, TIER_PREMIUM  # noqa: E402
from servicedome.security_utils import create_jwt_token  # noqa: E402


class RecordingDispatcher(PushDispatcher):
    """Captures pushes instead of sending them"""

    mode = "recording"

    def __init__(self):
        self.sent = []

    async def dispatch(self, token, payload, background_tasks=None):
        self.sent.append((token, payload))
        return True


class FailingDispatcher(PushDispatcher):
    async def dispatch(self, token, payload, background_tasks=None):
        raise RuntimeError("push provider down")


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def push_recorder():
    return RecordingDispatcher()


@pytest.fixture
def notification_service(db, push_recorder):
    return NotificationService(db, dispatcher=push_recorder)


@pytest.fixture
def client(session_factory, push_recorder):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_push_dispatcher] = lambda: push_recorder
    yield TestClient(app)
    app.dependency_overrides.clear()


_counter = {"n": 0}


@pytest.fixture
def make_account(db):
    """Register an account through the service; Premium vendors get an active subscription"""

    def _make(roles=("Customer",), name=None, premium=False, push_token=None):
        _counter["n"] += 1
        n = _counter["n"]
        service = AccountService(db)
        account = service.create_account(
            AccountCreate(
                name=name or f"User {n}",
                email=f"user{n}@example.com",
                password="password123",
                phone="+1 555 010 0000",
                roles=list(roles),
            )
        )
        if premium:
            service.apply_subscription(
                account.id,
                SubscriptionUpdate(membershipTier=TIER_PREMIUM, subscriptionStatus=SUBSCRIPTION_ACTIVE),
            )
        if push_token:
            service.update_push_token(account.id, push_token)
        db.refresh(account)
        return account

    return _make


@pytest.fixture
def vendor(make_account):
    return make_account(roles=("Vendor",), name="Vendor One", push_token="ExponentPushToken[vendor-1]")


@pytest.fixture
def customer(make_account):
    return make_account(roles=("Customer",), name="Customer One", push_token="ExponentPushToken[cust-1]")


def auth_headers(account) -> dict:
    token = create_jwt_token({"sub": str(account.id)}, JWT_SECRET)
    return {"Authorization": f"Bearer {token}"}


PAGE_DRAFT = {
    "businessName": "Sharp Cuts",
    "category": {"name": "Barbers", "slug": "barbers"},
    "about": "Walk-ins welcome",
    "location": {"latitude": 51.5, "longitude": -0.12, "address": "1 High St"},
    "openingHours": [
        {"day": "Monday", "openingTime": "09:00", "closingTime": "17:00"},
        {"day": "Sunday", "openingTime": "00:00", "closingTime": "00:00", "isClosed": True},
    ],
}


@pytest.fixture
def make_page(db):
    def _make(owner, **overrides):
        return PageService(db).create_page(owner, PageCreate(**{**PAGE_DRAFT, **overrides}))

    return _make


@pytest.fixture
def page(make_page, vendor):
    return make_page(vendor)


@pytest.fixture
def make_slot(db):
    def _make(page, day="Monday", time="09:00", status="Available", block_reason=None):
        return TimeSlotService(db).create_slot(
            page.id, page.vendor_id, SlotCreate(day=day, time=time, status=status, blockReason=block_reason)
        )

    return _make
