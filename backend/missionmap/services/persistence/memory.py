# backend/missionmap/services/persistence/memory.py
from __future__ import annotations
from typing import Dict, List

from missionmap.errors import PersistenceError
from missionmap.schemas.geometry import MissionGeometry
from missionmap.schemas.mission import Mission
from missionmap.schemas.rule import Rule


class MemoryPersistence:
    """プロセス内だけで保持する MissionPersistence 実装（オフライン・テスト用）"""

    def __init__(self):
        self._missions: Dict[str, Mission] = {}
        self._rules: Dict[str, Rule] = {}
        self._geometries: Dict[str, MissionGeometry] = {}
        self.fail_writes = False

    def _check_writable(self, what: str):
        if self.fail_writes:
            raise PersistenceError(f"{what}: storage unavailable")

    def list_missions(self) -> List[Mission]:
        return list(self._missions.values())

    def create_mission(self, mission: Mission) -> Mission:
        self._check_writable("create_mission")
        return self._missions.setdefault(mission.id, mission)

    def list_rules(self, mission_id: str) -> List[Rule]:
        return [r for r in self._rules.values() if r.mission_id == mission_id]

    def list_geometries(self, mission_id: str) -> List[MissionGeometry]:
        return [g for g in self._geometries.values() if g.mission_id == mission_id]

    def create_rule(self, mission_id: str, rule: Rule) -> Rule:
        self._check_writable("create_rule")
        return self._rules.setdefault(rule.id, rule.model_copy(update={"mission_id": mission_id}))

    def create_geometry(self, mission_id: str, geometry: MissionGeometry) -> MissionGeometry:
        self._check_writable("create_geometry")
        stored = geometry.model_copy(update={"mission_id": mission_id, "rule_id": None})
        return self._geometries.setdefault(geometry.id, stored)
