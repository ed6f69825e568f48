# backend/missionmap/services/persistence/base.py
from __future__ import annotations
from typing import List, Protocol

from missionmap.schemas.geometry import MissionGeometry
from missionmap.schemas.mission import Mission
from missionmap.schemas.rule import Rule


class MissionPersistence(Protocol):
    """
    ミッション単位のルール／形状を保存する外部コラボレータ。
    - 一覧と作成のみ（更新・削除のエンドポイントは持たない）
    - 返す MissionGeometry の rule_id は常に None（逆参照は読み込み側で再構成）
    - 失敗時は PersistenceError を送出する
    """

    def list_missions(self) -> List[Mission]: ...

    def create_mission(self, mission: Mission) -> Mission: ...

    def list_rules(self, mission_id: str) -> List[Rule]: ...

    def list_geometries(self, mission_id: str) -> List[MissionGeometry]: ...

    def create_rule(self, mission_id: str, rule: Rule) -> Rule: ...

    def create_geometry(self, mission_id: str, geometry: MissionGeometry) -> MissionGeometry: ...
