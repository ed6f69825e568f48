# scripts/seed_demo.py
import logging

from missionmap import settings
from missionmap.db import init_db
from missionmap.schemas.geometry import MissionGeometry
from missionmap.schemas.mission import Mission
from missionmap.schemas.rule import Rule
from missionmap.services.persistence.sql import SqlPersistence

logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
log = logging.getLogger("seed-demo")

MISSIONS = [
    Mission(id="m1", name="Desert Sentinel", description="Surveillance of perimeter alpha in the southern sector."),
    Mission(id="m2", name="Oceanic Reach", description="Monitoring deep sea sensors near the continental shelf."),
    Mission(id="m3", name="Urban Grid", description="Public safety analysis in downtown metropolitan area."),
]

GEOMETRIES = [
    MissionGeometry(id="g1", mission_id="m1", name="Alpha Gate", type="Point", coordinates=(34.0522, -118.2437)),
    MissionGeometry(
        id="g2", mission_id="m1", name="No Fly Zone 1", type="Polygon",
        coordinates=[(34.05, -118.25), (34.06, -118.25), (34.06, -118.24), (34.05, -118.24)],
    ),
    MissionGeometry(id="g3", mission_id="m1", name="Secondary Observation Post", type="Point", coordinates=(34.058, -118.248)),
    MissionGeometry(id="g4", mission_id="m2", name="Sea Buoy X-4", type="Point", coordinates=(33.8121, -117.9190)),
]

RULES = [
    Rule(id="r1", mission_id="m1", name="Entry Protocol",
         description="All personnel must check in via biometrics at Alpha Gate.",
         value="Strict Biometric Auth", geometry_id="g1"),
    Rule(id="r2", mission_id="m1", name="Air Restriction",
         description="Unauthorized drones will be jammed immediately.",
         value="Signal Jamming Active", geometry_id="g2"),
    Rule(id="r3", mission_id="m1", name="General Safety",
         description="Hard hats required at all times across all sites.",
         value="PPE Level 2"),
]


def main():
    init_db()
    store = SqlPersistence()
    for mission in MISSIONS:
        log.info("seeding mission %s (%s)", mission.id, mission.name)
        store.create_mission(mission)
        for geo in (g for g in GEOMETRIES if g.mission_id == mission.id):
            store.create_geometry(mission.id, geo)
        for rule in (r for r in RULES if r.mission_id == mission.id):
            store.create_rule(mission.id, rule)
    log.info("seed complete")


if __name__ == "__main__":
    main()
