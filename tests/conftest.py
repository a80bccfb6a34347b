"""
Pytest configuration and shared fixtures.
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from cookbook.app import create_app
from cookbook.config import CookbookConfig
from cookbook.cookbook import Cookbook
from cookbook.db import init_db, make_engine, make_session_factory
from cookbook.schemas import Recipe
from cookbook.store import DocumentStore

MEMORY_DB = {"database_url": "sqlite://"}


class _Handle:
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose clock only moves when a test calls advance()."""

    def __init__(self):
        self.now = 0.0
        self.handles = []

    def call_later(self, delay, callback):
        handle = _Handle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self.handles if not h.cancelled]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [h for h in self.pending if h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.handles.remove(handle)
            self.now = handle.when
            handle.callback()
        self.now = target


class TickingClock:
    """Clock that moves one second forward on every reading."""

    def __init__(self, start=datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self):
        value = self.current
        self.current += timedelta(seconds=1)
        return value


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def session_factory():
    engine = make_engine(MEMORY_DB["database_url"])
    init_db(engine)
    return make_session_factory(engine)


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def store(session_factory, clock) -> DocumentStore:
    return DocumentStore(session_factory, clock=clock)


@pytest.fixture
def config() -> CookbookConfig:
    return CookbookConfig(app_id="test-app", store=dict(MEMORY_DB))


@pytest.fixture
def cookbook(config, scheduler, store):
    cb = Cookbook(config, scheduler=scheduler, store=store)
    cb.connect()
    yield cb
    cb.close()


@pytest.fixture
def client(config, scheduler):
    app = create_app(config, scheduler=scheduler)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_recipe():
    def _make(recipe_id="r1", title="Pie", ingredients=("flour", "apples"), instructions="Bake.", date_added=None):
        return Recipe(
            id=recipe_id,
            title=title,
            ingredients=list(ingredients),
            instructions=instructions,
            date_added=date_added,
        )

    return _make


@pytest.fixture
def clean_env(monkeypatch):
    """Unset cookbook variables and restore them afterwards, even if a .env file sets them."""
    for var in ("COOKBOOK_APP_ID", "COOKBOOK_STORE_CONFIG", "COOKBOOK_INITIAL_AUTH_TOKEN"):
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)
    monkeypatch.setattr("cookbook.main.setup_logging", lambda: None)
