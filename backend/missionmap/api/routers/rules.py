from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from missionmap.db import get_db
from missionmap.schemas.commons import new_id
from missionmap.schemas.rule import Rule, RuleIn
from missionmap.services.persistence import sql as store
from .missions import require_mission

router = APIRouter()


@router.get("/{mission_id}/rules")
def list_rules(mission_id: str, db: Session = Depends(get_db)) -> list[Rule]:
    require_mission(db, mission_id)
    return store.list_rules(db, mission_id)


@router.post("/{mission_id}/rules")
def create_rule(mission_id: str, payload: RuleIn, db: Session = Depends(get_db)) -> Rule:
    require_mission(db, mission_id)
    if payload.geometry_id:
        # 1形状に紐付けられるルールは1つだけ
        if payload.geometry_id not in {g.id for g in store.list_geometries(db, mission_id)}:
            raise HTTPException(status_code=422, detail="geometry not found in mission")
        owner = next(
            (r.id for r in store.list_rules(db, mission_id) if r.geometry_id == payload.geometry_id),
            None,
        )
        if owner is not None and owner != payload.id:
            raise HTTPException(status_code=409, detail=f"geometry already linked to rule {owner}")
    rule = Rule(
        id=payload.id or new_id("r"),
        mission_id=mission_id,
        name=payload.name,
        description=payload.description,
        value=payload.value,
        geometry_id=payload.geometry_id or None,
    )
    return store.create_rule(db, mission_id, rule)
