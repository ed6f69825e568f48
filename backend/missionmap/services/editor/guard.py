# backend/missionmap/services/editor/guard.py
"""
空間リンク方式（none / existing / new）や作図する形状タイプの切替で、
未確定の下書き・選択が黙って失われないようにする確認ゲート。

- 切替要求は「未保存の作業があるか」で判定する
    (new かつ 作図中 or 取得済み) or (existing かつ 保存済みと異なる形状を選択中)
- ある場合は保留スロット（1つだけ）に記録して確認プロンプトを返す
- stay: 何も変えない / continue: 下書き・選択を消してから保留中の変更を適用
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, Literal, Optional

from missionmap.schemas.commons import AttachmentSource, GeometryType
from missionmap.services.capture.coordinator import SurfaceCoordinator
from missionmap.services.capture.session import Surface

logger = logging.getLogger(__name__)

Choice = Literal["stay", "continue"]
STAY: Choice = "stay"
CONTINUE: Choice = "continue"


@dataclass(frozen=True)
class PendingChange:
    source: Optional[AttachmentSource] = None
    geometry_type: Optional[GeometryType] = None
    surface: Optional[Surface] = None


@dataclass(frozen=True)
class ConfirmationPrompt:
    pending: PendingChange
    title: str = "Discard changes?"
    message: str = "Changing the spatial attachment mode will discard your current drawing or selection."


class ModeSwitchGuard:
    def __init__(
        self,
        coordinator: SurfaceCoordinator,
        persisted_geometry_id: Optional[str] = None,
        start_drawing: Optional[Callable[[Surface, GeometryType], None]] = None,
    ):
        self.coordinator = coordinator
        self.persisted_geometry_id = persisted_geometry_id
        self.source: AttachmentSource = "existing" if persisted_geometry_id else "none"
        self.selected_geometry_id: Optional[str] = persisted_geometry_id
        self.geometry_type: Optional[GeometryType] = None
        self.prompt: Optional[ConfirmationPrompt] = None
        self._start_drawing = start_drawing

    def has_unsaved_work(self) -> bool:
        session = self.coordinator.session
        if self.source == "new" and (session.is_drawing or session.captured is not None):
            return True
        if self.source == "existing" and self.selected_geometry_id and self.selected_geometry_id != self.persisted_geometry_id:
            return True
        return False

    def select(self, geometry_id: Optional[str]) -> None:
        self.selected_geometry_id = geometry_id or None

    def request_source(self, source: AttachmentSource) -> Optional[ConfirmationPrompt]:
        if self.prompt is not None:
            return self.prompt
        if source == self.source:
            return None
        return self._gate(PendingChange(source=source))

    def request_geometry_type(self, geometry_type: GeometryType, surface: Optional[Surface] = None) -> Optional[ConfirmationPrompt]:
        """形状タイプの切替（surface 指定時はそのまま作図を開始する）"""
        if self.prompt is not None:
            return self.prompt
        if geometry_type == self.geometry_type:
            # 同じタイプの描き直しは確認なし
            if surface is not None:
                self._start(surface, geometry_type)
            return None
        return self._gate(PendingChange(geometry_type=geometry_type, surface=surface))

    def resolve(self, choice: Choice) -> bool:
        """確認プロンプトへの回答。変更を適用したら True"""
        if choice not in (STAY, CONTINUE):
            raise ValueError(f"unknown choice: {choice}")
        prompt, self.prompt = self.prompt, None
        if prompt is None:
            return False
        if choice == STAY:
            logger.debug("pending change %s dropped", prompt.pending)
            return False
        self._apply(prompt.pending)
        return True

    def _gate(self, change: PendingChange) -> Optional[ConfirmationPrompt]:
        if self.has_unsaved_work():
            self.prompt = ConfirmationPrompt(change)
            logger.info("confirmation required before %s", change)
            return self.prompt
        self._apply(change)
        return None

    def _apply(self, change: PendingChange) -> None:
        if change.source is not None:
            if change.source != "existing":
                self.selected_geometry_id = None
            if change.source != "new":
                self.geometry_type = None
            self.coordinator.abandon()
            self.source = change.source
            logger.debug("attachment source -> %s", change.source)
        if change.geometry_type is not None:
            self.coordinator.abandon()
            self.geometry_type = change.geometry_type
            if change.surface is not None:
                self._start(change.surface, change.geometry_type)

    def _start(self, surface: Surface, geometry_type: GeometryType) -> None:
        if self._start_drawing is None:
            self.coordinator.request_draw(surface, geometry_type)
        else:
            self._start_drawing(surface, geometry_type)
