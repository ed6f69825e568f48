# backend/missionmap/services/capture/coordinator.py
from __future__ import annotations
import logging
from typing import Callable, Dict, Optional, Protocol, Sequence, Tuple

from missionmap.errors import SurfaceBusy
from missionmap.schemas.commons import Coordinate, GeometryType
from .session import CaptureSession, CaptureState, CapturedShape, Surface

logger = logging.getLogger(__name__)

CaptureListener = Callable[[CapturedShape], None]


class MapSurface(Protocol):
    """描画面（主地図／フォーム内地図）。完成の判定はしない。"""

    def set_active_drawing_cursor(self, active: bool) -> None: ...

    def show_draft(self, geometry_type: GeometryType, vertices: Tuple[Coordinate, ...]) -> None: ...


class SurfaceCoordinator:
    """
    2つの描画面のうち作図できるのは常に1つだけ。
    - 作図中の面は active_surface（明示的な列挙値）で保持する
    - 主地図で作図する間はフォームを隠し、終了時に戻す
    - 確定した形状は作図を要求したリスナー1つだけに通知する
    """

    def __init__(self, session: Optional[CaptureSession] = None, surfaces: Optional[Dict[Surface, MapSurface]] = None):
        self.session = session or CaptureSession()
        self.session.on_preview = self._relay_preview
        self._surfaces: Dict[Surface, MapSurface] = {}
        self._listener: Optional[CaptureListener] = None
        self._form_hidden_for_draw = False
        self.form_visible = False
        for surface, view in (surfaces or {}).items():
            self.attach(surface, view)

    @property
    def active_surface(self) -> Optional[Surface]:
        return self.session.surface if self.session.is_drawing else None

    def attach(self, surface: Surface, view: MapSurface) -> None:
        self._surfaces[surface] = view
        view.set_active_drawing_cursor(self.active_surface is surface)

    def detach(self, surface: Surface) -> None:
        if self.active_surface is surface:
            self.cancel(surface)
        self._surfaces.pop(surface, None)

    def open_form(self) -> None:
        self.form_visible = True

    def close_form(self) -> None:
        self.form_visible = False
        self._form_hidden_for_draw = False

    def is_busy(self, surface: Surface) -> bool:
        active = self.active_surface
        return active is not None and active is not surface

    def request_draw(self, surface: Surface, geometry_type: GeometryType, listener: Optional[CaptureListener] = None) -> None:
        active = self.active_surface
        if active is not None and active is not surface:
            logger.debug("draw request on %s rejected: %s is drawing", surface.value, active.value)
            raise SurfaceBusy(surface, active)

        self.session.start(surface, geometry_type)

        if surface is Surface.PRIMARY and active is not Surface.PRIMARY and self.form_visible:
            # 主地図で描けるようフォームを一時的に隠す
            self.form_visible = False
            self._form_hidden_for_draw = True

        self._listener = listener
        self._set_cursors(surface)
        logger.info("drawing %s on %s surface", geometry_type, surface.value)

    def pointer_click(self, surface: Surface, coordinate: Sequence[float]) -> Optional[CapturedShape]:
        if self.active_surface is not surface:
            return None
        return self._deliver(self.session.click(coordinate))

    def double_activate(self, surface: Surface, coordinate: Optional[Sequence[float]] = None, now: Optional[float] = None):
        # 座標は直前のクリックで入力済み。ここでは完成要求だけを予約する
        if self.active_surface is not surface:
            return None
        return self.session.request_finish(now)

    def finish(self, surface: Surface) -> Optional[CapturedShape]:
        if self.active_surface is not surface:
            return None
        return self._deliver(self.session.finish())

    def poll(self, now: Optional[float] = None) -> Optional[CapturedShape]:
        if not self.session.is_drawing:
            return None
        return self._deliver(self.session.poll(now))

    def cancel(self, surface: Surface) -> bool:
        if self.active_surface is not surface:
            return False
        self.session.cancel()
        self._listener = None
        self._end_drawing()
        logger.info("drawing cancelled on %s surface", surface.value)
        return True

    def abandon(self) -> None:
        """下書きを破棄して IDLE に戻す（モード切替の確定・フォームを閉じる時）"""
        was_drawing = self.session.is_drawing
        self.session.reset()
        self._listener = None
        if was_drawing:
            self._end_drawing()

    def select_shape(self, geometry_id: str) -> Optional[str]:
        # 主地図での作図中は既存形状の選択より作図を優先
        if self.session.state is CaptureState.DRAWING_PRIMARY:
            logger.debug("selection of %s suppressed while drawing", geometry_id)
            return None
        return geometry_id

    def _deliver(self, captured: Optional[CapturedShape]) -> Optional[CapturedShape]:
        if captured is None:
            return None
        listener, self._listener = self._listener, None
        self._end_drawing()
        if listener is not None:
            listener(captured)
        return captured

    def _end_drawing(self) -> None:
        self._set_cursors(None)
        if self._form_hidden_for_draw:
            self.form_visible = True
            self._form_hidden_for_draw = False

    def _set_cursors(self, active: Optional[Surface]) -> None:
        for surface, view in self._surfaces.items():
            view.set_active_drawing_cursor(surface is active)

    def _relay_preview(self, surface: Surface, geometry_type: GeometryType, vertices) -> None:
        view = self._surfaces.get(surface)
        if view is not None:
            view.show_draft(geometry_type, vertices)
