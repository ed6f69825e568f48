import itertools
import os

# モジュール側のエンジンがファイルDBを作らないように
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from missionmap.db import get_db, init_db
from missionmap.main import app
from missionmap.schemas.geometry import MissionGeometry
from missionmap.schemas.mission import Mission
from missionmap.schemas.rule import Rule
from missionmap.services.capture.coordinator import SurfaceCoordinator
from missionmap.services.capture.session import CaptureSession, Surface
from missionmap.services.mission.session import MissionSession
from missionmap.services.persistence.memory import MemoryPersistence

FINISH_DELAY = 0.1


class RecordingSurface:
    def __init__(self):
        self.cursor = False
        self.drafts = []

    def set_active_drawing_cursor(self, active):
        self.cursor = active

    def show_draft(self, geometry_type, vertices):
        self.drafts.append((geometry_type, tuple(vertices)))


class ManualClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def sequential_ids():
    counter = itertools.count(1)
    return lambda prefix: f"{prefix}-{next(counter)}"


def seed(persistence):
    persistence.create_mission(Mission(id="m1", name="Desert Sentinel", description="Perimeter alpha"))
    persistence.create_mission(Mission(id="m2", name="Oceanic Reach"))
    for geo in [
        MissionGeometry(id="g1", mission_id="m1", name="Alpha Gate", type="Point", coordinates=(34.0522, -118.2437)),
        MissionGeometry(
            id="g2", mission_id="m1", name="No Fly Zone 1", type="Polygon",
            coordinates=[(34.05, -118.25), (34.06, -118.25), (34.06, -118.24), (34.05, -118.24)],
        ),
        MissionGeometry(id="g3", mission_id="m1", name="Observation Post", type="Point", coordinates=(34.058, -118.248)),
        MissionGeometry(id="g4", mission_id="m2", name="Sea Buoy X-4", type="Point", coordinates=(33.8121, -117.919)),
    ]:
        persistence.create_geometry(geo.mission_id, geo)
    for rule in [
        Rule(id="r1", mission_id="m1", name="Entry Protocol", description="Biometric check-in at Alpha Gate.",
             value="Strict Biometric Auth", geometry_id="g1"),
        Rule(id="r2", mission_id="m1", name="Air Restriction", description="Drones will be jammed.",
             value="Signal Jamming Active", geometry_id="g2"),
        Rule(id="r3", mission_id="m1", name="General Safety", description="Hard hats required.", value="PPE Level 2"),
    ]:
        persistence.create_rule(rule.mission_id, rule)
    return persistence


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def surfaces():
    return {Surface.PRIMARY: RecordingSurface(), Surface.INLINE: RecordingSurface()}


@pytest.fixture
def session(clock):
    return CaptureSession(clock=clock, finish_delay=FINISH_DELAY)


@pytest.fixture
def coordinator(session, surfaces):
    return SurfaceCoordinator(session, surfaces)


@pytest.fixture
def persistence():
    return seed(MemoryPersistence())


@pytest.fixture
def mission(persistence, clock, surfaces):
    ms = MissionSession(persistence, id_factory=sequential_ids(), clock=clock, finish_delay=FINISH_DELAY)
    for surface, view in surfaces.items():
        ms.coordinator.attach(surface, view)
    ms.select_mission("m1")
    return ms


@pytest.fixture
def client():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        engine.dispose()
