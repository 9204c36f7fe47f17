"""Shared test fixtures."""

import random
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event as sa_event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from lifequest.config import DEFAULT_CATALOG_DIR
from lifequest.core.clock import FixedClock
from lifequest.core.event_bus import EventBus
from lifequest.db.database import get_db
from lifequest.db.models import Base
from lifequest.main import app, load_catalogs
from lifequest.services.battle_service import BattleService
from lifequest.services.log_service import LogService
from lifequest.services.progression_service import ProgressionService
from lifequest.services.quest_service import QuestService
from lifequest.services.skill_tree_service import SkillTreeService
from lifequest.services.truth_service import TruthService

TEST_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
)
TestSession = sessionmaker(bind=TEST_ENGINE, autocommit=False, autoflush=False)

# Wednesday; the ISO week starts Monday 2026-03-02
NOW = datetime(2026, 3, 4, 9, 0, tzinfo=timezone.utc)


def _override_get_db():
    db = TestSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture()
def client() -> TestClient:
    """FastAPI TestClient wired to an in-memory SQLite database."""
    return TestClient(app)


@pytest.fixture()
def db() -> Session:
    """Fresh in-memory database with every table, one per test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @sa_event.listens_for(engine, "connect")
    def _set_fk(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture(scope="session")
def catalogs():
    """The shipped JSON catalogs, loaded once."""
    return load_catalogs(DEFAULT_CATALOG_DIR)


@pytest.fixture()
def bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def services(db, bus, clock, catalogs) -> SimpleNamespace:
    """Every service on one session and one bus, like the app wires them."""
    return SimpleNamespace(
        progression=ProgressionService(
            db, bus, clock, activities=catalogs.activities, perk_points_per_level=1
        ),
        skill_trees=SkillTreeService(db, bus, clock, catalogs.skill_trees),
        quests=QuestService(db, bus, clock, catalogs.quests),
        battles=BattleService(db, bus, clock, catalogs.enemies, rng=random.Random(7)),
        truths=TruthService(db, bus, clock),
        log=LogService(db),
    )


@pytest.fixture()
def hero(services) -> str:
    """A freshly created character id."""
    services.progression.ensure_character("hero")
    return "hero"
