# backend/missionmap/services/editor/form.py
from __future__ import annotations
import logging
from typing import Callable, List, Optional

from missionmap.errors import DanglingSelection
from missionmap.schemas.commons import AttachmentSource, GeometryType, new_id
from missionmap.schemas.geometry import MissionGeometry
from missionmap.schemas.rule import Rule
from missionmap.services.capture.coordinator import SurfaceCoordinator
from missionmap.services.capture.session import CapturedShape, Surface
from missionmap.services.mission.stores import GeometryStore
from .guard import Choice, ConfirmationPrompt, ModeSwitchGuard

logger = logging.getLogger(__name__)

SaveRule = Callable[[Rule, Optional[CapturedShape], bool], Rule]


class RuleEditor:
    """
    ルールの新規作成／編集フォーム。
    下書き形状は CaptureSession が保持し、フォームを閉じると破棄される。
    """

    def __init__(
        self,
        mission_id: str,
        coordinator: SurfaceCoordinator,
        geometries: GeometryStore,
        save: SaveRule,
        rule: Optional[Rule] = None,
        id_factory: Callable[[str], str] = new_id,
    ):
        self.mission_id = mission_id
        self.coordinator = coordinator
        self.initial = rule
        self.name = rule.name if rule else ""
        self.description = rule.description if rule else ""
        self.value = rule.value if rule else ""
        self.last_capture: Optional[CapturedShape] = None
        self.closed = False
        self._geometries = geometries
        self._save = save
        self._id_factory = id_factory
        self.guard = ModeSwitchGuard(
            coordinator,
            persisted_geometry_id=rule.geometry_id if rule else None,
            start_drawing=self._request_draw,
        )
        coordinator.open_form()

    @property
    def is_new(self) -> bool:
        return self.initial is None

    @property
    def source(self) -> AttachmentSource:
        return self.guard.source

    @property
    def selected_geometry_id(self) -> Optional[str]:
        return self.guard.selected_geometry_id

    @property
    def draft(self) -> Optional[CapturedShape]:
        return self.coordinator.session.captured

    @property
    def prompt(self) -> Optional[ConfirmationPrompt]:
        return self.guard.prompt

    def selectable_geometries(self) -> List[MissionGeometry]:
        # 他のルールが所有している形状は候補に出さない（編集中ルール自身の形状は可）
        own_id = self.initial.id if self.initial else None
        return [g for g in self._geometries if g.rule_id is None or g.rule_id == own_id]

    def request_source(self, source: AttachmentSource) -> Optional[ConfirmationPrompt]:
        return self.guard.request_source(source)

    def select_geometry(self, geometry_id: Optional[str]) -> None:
        if self.source != "existing":
            raise ValueError("attachment source must be 'existing' to select a geometry")
        if geometry_id and geometry_id not in {g.id for g in self.selectable_geometries()}:
            raise DanglingSelection(geometry_id)
        self.guard.select(geometry_id)

    def start_drawing(self, surface: Surface, geometry_type: Optional[GeometryType] = None) -> Optional[ConfirmationPrompt]:
        if self.source != "new":
            raise ValueError("attachment source must be 'new' to draw a geometry")
        geometry_type = geometry_type or self.guard.geometry_type
        if geometry_type is None:
            raise ValueError("geometry type required")
        return self.guard.request_geometry_type(geometry_type, surface)

    def confirm(self, choice: Choice) -> bool:
        return self.guard.resolve(choice)

    def discard_draft(self) -> None:
        self.coordinator.session.discard()
        self.last_capture = None

    def build_rule(self) -> Rule:
        if not self.name.strip():
            raise ValueError("rule name is required")
        return Rule(
            id=self.initial.id if self.initial else self._id_factory("r"),
            mission_id=self.mission_id,
            name=self.name,
            description=self.description,
            value=self.value,
            geometry_id=self.selected_geometry_id if self.source == "existing" else None,
        )

    def submit(self) -> Rule:
        rule = self.build_rule()
        capture = self.draft if self.source == "new" else None
        saved = self._save(rule, capture, self.is_new)
        self.close()
        return saved

    def close(self) -> None:
        if self.closed:
            return
        self.coordinator.abandon()
        self.coordinator.close_form()
        self.closed = True

    def _request_draw(self, surface: Surface, geometry_type: GeometryType) -> None:
        self.coordinator.request_draw(surface, geometry_type, self._on_captured)

    def _on_captured(self, captured: CapturedShape) -> None:
        self.last_capture = captured
        logger.debug("editor received %s from %s surface", captured.type, captured.surface.value)
