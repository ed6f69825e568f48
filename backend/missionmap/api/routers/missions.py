from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from missionmap.db import get_db
from missionmap.schemas.commons import new_id
from missionmap.schemas.mission import Mission, MissionIn
from missionmap.schemas.stats import MissionStats
from missionmap.services.export.geojson import feature_collection
from missionmap.services.linking.reconcile import derive_links
from missionmap.services.persistence import sql as store
from missionmap.services.stats.summary import mission_stats

router = APIRouter()


def require_mission(db: Session, mission_id: str) -> Mission:
    m = store.get_mission(db, mission_id)
    if not m:
        raise HTTPException(status_code=404, detail="mission not found")
    return m


@router.get("")
@router.get("/")
def list_missions(db: Session = Depends(get_db)) -> list[Mission]:
    return store.list_missions(db)


@router.post("")
@router.post("/")
def create_mission(payload: MissionIn, db: Session = Depends(get_db)) -> Mission:
    mission = Mission(
        id=payload.id or new_id("m"),
        name=payload.name,
        description=payload.description or "",
    )
    return store.create_mission(db, mission)


@router.get("/{mission_id}")
def get_mission(mission_id: str, db: Session = Depends(get_db)) -> Mission:
    return require_mission(db, mission_id)


@router.get("/{mission_id}/features")
def list_features(mission_id: str, db: Session = Depends(get_db)):
    """
    ミッションの形状を GeoJSON FeatureCollection で返す。
    - ルールとの紐付けは rules.geometry_id から再構成
    """
    require_mission(db, mission_id)
    rules = store.list_rules(db, mission_id)
    geometries = derive_links(rules, store.list_geometries(db, mission_id))
    return feature_collection(geometries, rules)


@router.get("/{mission_id}/stats")
def mission_summary(mission_id: str, db: Session = Depends(get_db)) -> MissionStats:
    require_mission(db, mission_id)
    rules = store.list_rules(db, mission_id)
    geometries = derive_links(rules, store.list_geometries(db, mission_id))
    return mission_stats(rules, geometries)
