from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from missionmap.db import get_db
from missionmap.schemas.commons import new_id
from missionmap.schemas.geometry import GeometryIn, MissionGeometry
from missionmap.services.linking.reconcile import derive_links
from missionmap.services.persistence import sql as store
from .missions import require_mission

router = APIRouter()


@router.get("/{mission_id}/geometries")
def list_geometries(mission_id: str, db: Session = Depends(get_db)) -> list[MissionGeometry]:
    require_mission(db, mission_id)
    # rule_id は保存していないので rules から毎回導出
    rules = store.list_rules(db, mission_id)
    return derive_links(rules, store.list_geometries(db, mission_id))


@router.post("/{mission_id}/geometries")
def create_geometry(mission_id: str, payload: GeometryIn, db: Session = Depends(get_db)) -> MissionGeometry:
    require_mission(db, mission_id)
    geometry = MissionGeometry(
        id=payload.id or new_id("g"),
        mission_id=mission_id,
        name=payload.name,
        type=payload.type,
        coordinates=payload.coordinates,
    )
    return store.create_geometry(db, mission_id, geometry)
