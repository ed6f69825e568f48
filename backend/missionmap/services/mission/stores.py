# backend/missionmap/services/mission/stores.py
from __future__ import annotations
from typing import Dict, Iterable, List, Optional

from missionmap.schemas.geometry import MissionGeometry
from missionmap.schemas.rule import Rule


class GeometryStore:
    """選択中ミッションの形状（ID索引、挿入順を保持）"""

    def __init__(self, geometries: Iterable[MissionGeometry] = ()):
        self._by_id: Dict[str, MissionGeometry] = {g.id: g for g in geometries}

    def __len__(self):
        return len(self._by_id)

    def __iter__(self):
        return iter(list(self._by_id.values()))

    def __contains__(self, geometry_id):
        return geometry_id in self._by_id

    def get(self, geometry_id: Optional[str]) -> Optional[MissionGeometry]:
        if not geometry_id:
            return None
        return self._by_id.get(geometry_id)

    def by_rule(self, rule_id: str) -> Optional[MissionGeometry]:
        for g in self._by_id.values():
            if g.rule_id == rule_id:
                return g
        return None

    def all(self) -> List[MissionGeometry]:
        return list(self._by_id.values())

    def replace_all(self, geometries: Iterable[MissionGeometry]) -> None:
        self._by_id = {g.id: g for g in geometries}


class RuleStore:
    """選択中ミッションのルール（ID索引、挿入順を保持）"""

    def __init__(self, rules: Iterable[Rule] = ()):
        self._by_id: Dict[str, Rule] = {r.id: r for r in rules}

    def __len__(self):
        return len(self._by_id)

    def __iter__(self):
        return iter(list(self._by_id.values()))

    def __contains__(self, rule_id):
        return rule_id in self._by_id

    def get(self, rule_id: Optional[str]) -> Optional[Rule]:
        if not rule_id:
            return None
        return self._by_id.get(rule_id)

    def all(self) -> List[Rule]:
        return list(self._by_id.values())

    def put(self, rule: Rule) -> None:
        # 既存IDは同じ位置のまま属性を置き換える
        self._by_id[rule.id] = rule

    def remove(self, rule_id: str) -> Optional[Rule]:
        return self._by_id.pop(rule_id, None)

    def replace_all(self, rules: Iterable[Rule]) -> None:
        self._by_id = {r.id: r for r in rules}
