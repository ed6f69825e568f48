# backend/missionmap/services/mission/session.py
from __future__ import annotations
import logging
import time
from typing import Callable, List, Optional

from missionmap.errors import PersistenceError
from missionmap.schemas.commons import new_id
from missionmap.schemas.geometry import MissionGeometry
from missionmap.schemas.mission import Mission
from missionmap.schemas.rule import Rule
from missionmap.schemas.stats import MissionStats
from missionmap.services.capture.coordinator import SurfaceCoordinator
from missionmap.services.capture.session import CaptureSession, CapturedShape
from missionmap.services.editor.form import RuleEditor
from missionmap.services.linking.reconcile import link_created, link_updated, reload_links, unlink_deleted
from missionmap.services.persistence.base import MissionPersistence
from missionmap.services.stats.summary import mission_stats
from .stores import GeometryStore, RuleStore

logger = logging.getLogger(__name__)


class MissionSession:
    """
    選択中ミッションのルール・形状ストアを保持するアプリケーションセッション。
    - ストアはリンク整合処理の結果でのみ差し替える（ルールと形状を同時に）
    - 永続化は作成のみ後追いで反映。失敗してもローカルの状態は戻さない
    """

    def __init__(
        self,
        persistence: MissionPersistence,
        id_factory: Callable[[str], str] = new_id,
        clock: Callable[[], float] = time.monotonic,
        finish_delay: Optional[float] = None,
    ):
        self.persistence = persistence
        self.missions: List[Mission] = []
        self.mission: Optional[Mission] = None
        self.rules = RuleStore()
        self.geometries = GeometryStore()
        self.coordinator = SurfaceCoordinator(CaptureSession(clock=clock, finish_delay=finish_delay))
        self.editor: Optional[RuleEditor] = None
        self._new_id = id_factory

    def load_missions(self) -> List[Mission]:
        self.missions = self.persistence.list_missions()
        return self.missions

    def select_mission(self, mission_id: str) -> Mission:
        if not self.missions:
            self.load_missions()
        mission = next((m for m in self.missions if m.id == mission_id), None)
        if mission is None:
            raise LookupError(f"mission not found: {mission_id}")

        self.close_editor()
        # 逆参照は保存されていないので毎回ここで作り直す（重複参照したルール側は外す）
        rules, geometries = reload_links(
            self.persistence.list_rules(mission_id),
            self.persistence.list_geometries(mission_id),
        )
        self.rules.replace_all(rules)
        self.geometries.replace_all(geometries)
        self.mission = mission
        logger.info("mission %s loaded: %d rules, %d geometries", mission_id, len(rules), len(geometries))
        return mission

    def open_editor(self, rule_id: Optional[str] = None) -> RuleEditor:
        mission = self._require_mission()
        rule = None
        if rule_id is not None:
            rule = self.rules.get(rule_id)
            if rule is None:
                raise LookupError(f"rule not found: {rule_id}")
        self.close_editor()
        self.editor = RuleEditor(
            mission.id,
            self.coordinator,
            self.geometries,
            save=self.save_rule,
            rule=rule,
            id_factory=self._new_id,
        )
        return self.editor

    def close_editor(self) -> None:
        if self.editor is not None:
            self.editor.close()
            self.editor = None

    def save_rule(self, rule: Rule, capture: Optional[CapturedShape] = None, is_new: Optional[bool] = None) -> Rule:
        mission = self._require_mission()
        if is_new is None:
            is_new = rule.id not in self.rules
        rule = rule.model_copy(update={"mission_id": mission.id})

        new_geometry = None
        if capture is not None:
            new_geometry = MissionGeometry(
                id=self._new_id("g"),
                mission_id=mission.id,
                name=f"Asset for {rule.name}",
                type=capture.type,
                coordinates=capture.coordinates,
            )

        link = link_created if is_new else link_updated
        result = link(self.geometries.all(), rule, new_geometry)
        self.geometries.replace_all(result.geometries)
        self.rules.put(result.rule)
        logger.info(
            "rule %s %s (geometry=%s)", result.rule.id, "created" if is_new else "updated", result.rule.geometry_id
        )

        self._mirror(result.rule if is_new else None, new_geometry)
        return result.rule

    def delete_rule(self, rule_id: str) -> bool:
        if rule_id not in self.rules:
            return False
        if self.editor is not None and self.editor.initial is not None and self.editor.initial.id == rule_id:
            self.close_editor()
        owned = self.geometries.by_rule(rule_id)
        geometries = unlink_deleted(self.geometries.all(), rule_id)
        self.rules.remove(rule_id)
        self.geometries.replace_all(geometries)
        # 削除は永続化層に反映しない（削除エンドポイントなし）
        logger.info("rule %s deleted (local only), freed geometry %s", rule_id, owned.id if owned else None)
        return True

    def stats(self) -> MissionStats:
        return mission_stats(self.rules.all(), self.geometries.all())

    def _mirror(self, rule: Optional[Rule], geometry: Optional[MissionGeometry]) -> None:
        mission_id = self.mission.id
        try:
            if geometry is not None:
                self.persistence.create_geometry(mission_id, geometry)
            if rule is not None:
                self.persistence.create_rule(mission_id, rule)
        except PersistenceError:
            logger.warning("failed to mirror create to storage; keeping local state", exc_info=True)

    def _require_mission(self) -> Mission:
        if self.mission is None:
            raise LookupError("no mission selected")
        return self.mission
