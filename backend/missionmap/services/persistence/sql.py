# backend/missionmap/services/persistence/sql.py
from __future__ import annotations
import json
import logging
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from missionmap.errors import PersistenceError
from missionmap.models.geometry import GeometryRow
from missionmap.models.mission import MissionRow
from missionmap.models.rule import RuleRow
from missionmap.schemas.geometry import MissionGeometry
from missionmap.schemas.mission import Mission
from missionmap.schemas.rule import Rule

logger = logging.getLogger(__name__)


def _mission_out(row: MissionRow) -> Mission:
    return Mission(id=row.id, name=row.name, description=row.description or "")


def _rule_out(row: RuleRow) -> Rule:
    return Rule(
        id=row.id,
        mission_id=row.mission_id,
        name=row.name,
        description=row.description or "",
        value=row.value or "",
        geometry_id=row.geometry_id or None,
    )


def list_missions(db: Session) -> List[Mission]:
    rows = db.query(MissionRow).order_by(MissionRow.id.asc()).all()
    return [_mission_out(m) for m in rows]


def get_mission(db: Session, mission_id: str) -> Optional[Mission]:
    m = db.get(MissionRow, mission_id)
    return _mission_out(m) if m else None


def create_mission(db: Session, mission: Mission) -> Mission:
    # ミッションは作成後に変更しない（同一IDの再登録は既存を返す）
    existing = db.get(MissionRow, mission.id)
    if existing:
        return _mission_out(existing)
    obj = MissionRow(id=mission.id, name=mission.name, description=mission.description or "")
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return _mission_out(obj)


def list_rules(db: Session, mission_id: str) -> List[Rule]:
    rows = db.query(RuleRow).filter(RuleRow.mission_id == mission_id).order_by(RuleRow.id.asc()).all()
    return [_rule_out(r) for r in rows]


def create_rule(db: Session, mission_id: str, rule: Rule) -> Rule:
    # 同一IDは何もしない（INSERT ... ON CONFLICT DO NOTHING 相当）
    existing = db.get(RuleRow, rule.id)
    if existing:
        return _rule_out(existing)
    obj = RuleRow(
        id=rule.id,
        mission_id=mission_id,
        name=rule.name,
        description=rule.description or "",
        value=rule.value or "",
        geometry_id=rule.geometry_id,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return _rule_out(obj)


def list_geometries(db: Session, mission_id: str) -> List[MissionGeometry]:
    rows = (
        db.query(GeometryRow)
        .filter(GeometryRow.mission_id == mission_id)
        .order_by(GeometryRow.id.asc())
        .all()
    )
    out: List[MissionGeometry] = []
    for g in rows:
        try:
            out.append(
                MissionGeometry(
                    id=g.id,
                    mission_id=g.mission_id,
                    name=g.name,
                    type=g.geometry_type,
                    coordinates=json.loads(g.coordinates),
                )
            )
        except ValueError:
            logger.warning("skipping unreadable geometry row %s", g.id)
            continue
    return out


def create_geometry(db: Session, mission_id: str, geometry: MissionGeometry) -> MissionGeometry:
    existing = db.get(GeometryRow, geometry.id)
    if existing is None:
        obj = GeometryRow(
            id=geometry.id,
            mission_id=mission_id,
            name=geometry.name,
            geometry_type=geometry.type,
            coordinates=json.dumps(geometry.coordinates, ensure_ascii=False),
        )
        db.add(obj)
        db.commit()
    return geometry.model_copy(update={"mission_id": mission_id, "rule_id": None})


class SqlPersistence:
    """SQLAlchemy セッションファクトリ経由の MissionPersistence 実装"""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        if session_factory is None:
            from missionmap.db import SessionLocal
            session_factory = SessionLocal
        self._session_factory = session_factory

    def _run(self, fn, *args):
        db = self._session_factory()
        try:
            return fn(db, *args)
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"{fn.__name__} failed: {e}") from e
        finally:
            db.close()

    def list_missions(self) -> List[Mission]:
        return self._run(list_missions)

    def create_mission(self, mission: Mission) -> Mission:
        return self._run(create_mission, mission)

    def list_rules(self, mission_id: str) -> List[Rule]:
        return self._run(list_rules, mission_id)

    def list_geometries(self, mission_id: str) -> List[MissionGeometry]:
        return self._run(list_geometries, mission_id)

    def create_rule(self, mission_id: str, rule: Rule) -> Rule:
        return self._run(create_rule, mission_id, rule)

    def create_geometry(self, mission_id: str, geometry: MissionGeometry) -> MissionGeometry:
        return self._run(create_geometry, mission_id, geometry)
