"""Test fixtures: in-memory DB, stores, and fakes for the external collaborators."""

from pathlib import Path

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vinted_watch.database import Base
from vinted_watch.monitor.checker import WatchChecker
from vinted_watch.notifier.base import BaseNotifier
from vinted_watch.schemas import ListingSnapshot, WatchQuery
from vinted_watch.scraper.base import ListingSource
from vinted_watch.store.ledger import NotificationLedger
from vinted_watch.store.listings import ListingStore
from vinted_watch.store.subscriptions import SubscriptionStore
from vinted_watch.store.users import UserSettingsStore

SAMPLES_DIR = Path(__file__).resolve().parent / "samples"


def make_snapshot(provider_id: str, price: float = 10.0, **kwargs) -> ListingSnapshot:
    return ListingSnapshot(
        provider_id=provider_id,
        title=kwargs.pop("title", f"Item {provider_id}"),
        price=price,
        url=kwargs.pop("url", f"https://www.vinted.nl/items/{provider_id}"),
        **kwargs,
    )


class FakeSource(ListingSource):
    """Returns queued snapshots (or raises queued errors) in order."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[WatchQuery, int]] = []
        self.details: dict = {}

    async def fetch(self, query, limit):
        self.calls.append((query, limit))
        response = self.responses.pop(0) if self.responses else []
        if isinstance(response, Exception):
            raise response
        return list(response)

    async def fetch_details(self, url):
        return dict(self.details)


class FakeNotifier(BaseNotifier):
    """Records deliveries; ``fail_ids`` makes delivery of those listings fail."""

    def __init__(self) -> None:
        self.sent: list[tuple[int, str]] = []
        self.attempts: list[tuple[int, str]] = []
        self.fail_ids: set[str] = set()
        self.raise_ids: set[str] = set()

    async def notify(self, subscription, listing):
        self.attempts.append((subscription.id, listing.provider_id))
        if listing.provider_id in self.raise_ids:
            raise RuntimeError("transport exploded")
        if listing.provider_id in self.fail_ids:
            return False
        self.sent.append((subscription.id, listing.provider_id))
        return True


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _fk_on(dbapi_conn, connection_record):
        dbapi_conn.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def listings(session_factory):
    return ListingStore(session_factory)


@pytest.fixture()
def subscriptions(session_factory):
    return SubscriptionStore(session_factory)


@pytest.fixture()
def ledger(session_factory):
    return NotificationLedger(session_factory)


@pytest.fixture()
def user_settings(session_factory):
    return UserSettingsStore(session_factory)


@pytest.fixture()
def source():
    return FakeSource()


@pytest.fixture()
def notifier():
    return FakeNotifier()


@pytest.fixture()
def checker(source, notifier, listings, subscriptions, ledger):
    return WatchChecker(source, notifier, listings, subscriptions, ledger, page_size=15)


@pytest.fixture()
def make_subscription(subscriptions):
    def _make(text="jas", owner="user-1", destination="channel-1", **bounds):
        sub_id = subscriptions.create(owner, destination, WatchQuery(text=text, **bounds))
        return subscriptions.get(sub_id)
    return _make


@pytest.fixture()
def catalog_json() -> str:
    return (SAMPLES_DIR / "vinted_catalog.json").read_text(encoding="utf-8")


@pytest.fixture()
def feed_html() -> str:
    return (SAMPLES_DIR / "vinted_feed.html").read_text(encoding="utf-8")


@pytest.fixture()
def item_html() -> str:
    return (SAMPLES_DIR / "vinted_item.html").read_text(encoding="utf-8")
