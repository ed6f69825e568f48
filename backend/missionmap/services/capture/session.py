# backend/missionmap/services/capture/session.py
"""
作図セッション（状態機械）。

状態: IDLE → DRAWING_PRIMARY / DRAWING_INLINE → CAPTURED
- Point: 最初のクリックで即 CAPTURED
- Polygon: クリックごとに頂点を追加（直前と同一座標は無視）、
  頂点3以上で完成ジェスチャを受け付ける
- 取消はいつでも成功し、IDLE に戻る
"""
from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from missionmap import settings
from missionmap.errors import DegenerateShape
from missionmap.schemas.commons import Coordinate, Coordinates, GeometryType, MIN_POLYGON_VERTICES
from .debounce import FinishTimer

logger = logging.getLogger(__name__)


class Surface(str, Enum):
    PRIMARY = "primary"  # 全画面の地図
    INLINE = "inline"  # フォーム内の小さな地図


class CaptureState(str, Enum):
    IDLE = "idle"
    DRAWING_PRIMARY = "drawing_primary"
    DRAWING_INLINE = "drawing_inline"
    CAPTURED = "captured"


_DRAWING_STATE = {
    Surface.PRIMARY: CaptureState.DRAWING_PRIMARY,
    Surface.INLINE: CaptureState.DRAWING_INLINE,
}


@dataclass(frozen=True)
class CapturedShape:
    type: GeometryType
    coordinates: Coordinates
    surface: Surface


PreviewSink = Callable[[Surface, GeometryType, Tuple[Coordinate, ...]], None]


class CaptureSession:
    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        finish_delay: Optional[float] = None,
        on_preview: Optional[PreviewSink] = None,
    ):
        self._clock = clock
        self.finish_delay = settings.FINISH_DEBOUNCE_S if finish_delay is None else finish_delay
        self.on_preview = on_preview
        self.state = CaptureState.IDLE
        self.surface: Optional[Surface] = None
        self.geometry_type: Optional[GeometryType] = None
        self.captured: Optional[CapturedShape] = None
        self._vertices: List[Coordinate] = []
        self._finish_timer: Optional[FinishTimer] = None

    @property
    def is_drawing(self) -> bool:
        return self.state in (CaptureState.DRAWING_PRIMARY, CaptureState.DRAWING_INLINE)

    @property
    def vertices(self) -> Tuple[Coordinate, ...]:
        return tuple(self._vertices)

    @property
    def finish_pending(self) -> bool:
        return self._finish_timer is not None and self._finish_timer.pending

    def start(self, surface: Surface, geometry_type: GeometryType) -> None:
        """作図開始（CAPTURED からの再作図は取得済みの形状を破棄する）"""
        if geometry_type not in ("Point", "Polygon"):
            raise ValueError(f"unsupported geometry type: {geometry_type}")
        self._clear_buffer()
        self._cancel_timer()
        self.captured = None
        self.surface = surface
        self.geometry_type = geometry_type
        self.state = _DRAWING_STATE[surface]
        logger.debug("drawing %s on %s surface", geometry_type, surface.value)

    def click(self, coordinate: Sequence[float]) -> Optional[CapturedShape]:
        if not self.is_drawing:
            return None
        lat, lng = coordinate
        pt = (float(lat), float(lng))

        if self.geometry_type == "Point":
            self._vertices = [pt]
            self._preview()
            return self._capture(pt)

        # 連打による重複入力を除外
        if self._vertices and self._vertices[-1] == pt:
            logger.debug("duplicate vertex %s ignored", pt)
            return None
        self._vertices.append(pt)
        if self._finish_timer is not None:
            self._finish_timer.rearm(self._clock())
        self._preview()
        return None

    def finish(self) -> Optional[CapturedShape]:
        """Polygon の完成。頂点が3未満なら何もしない"""
        self._cancel_timer()
        if not self.is_drawing or self.geometry_type != "Polygon":
            return None
        if len(self._vertices) < MIN_POLYGON_VERTICES:
            logger.debug("finish ignored: %s", DegenerateShape(f"{len(self._vertices)} vertices"))
            return None
        # 確定時点のバッファを複製してから消去
        coords = list(self._vertices)
        self._clear_buffer()
        return self._capture(coords)

    def request_finish(self, now: Optional[float] = None) -> Optional[FinishTimer]:
        """ダブルクリックによる完成要求。一定時間後に poll() で確定する"""
        if not self.is_drawing or self.geometry_type != "Polygon":
            return None
        now = self._clock() if now is None else now
        if self.finish_pending:
            self._finish_timer.rearm(now)
        else:
            self._finish_timer = FinishTimer(self.finish_delay, now)
        return self._finish_timer

    def poll(self, now: Optional[float] = None) -> Optional[CapturedShape]:
        timer = self._finish_timer
        if timer is None:
            return None
        now = self._clock() if now is None else now
        if not timer.is_due(now):
            return None
        timer.fire()
        return self.finish()

    def cancel(self) -> None:
        if not self.is_drawing:
            return
        logger.debug("drawing cancelled on %s surface", self.surface.value)
        self.reset()

    def discard(self) -> None:
        if self.state is CaptureState.CAPTURED:
            self.reset()

    def reset(self) -> None:
        self._cancel_timer()
        self._clear_buffer()
        self.captured = None
        self.surface = None
        self.geometry_type = None
        self.state = CaptureState.IDLE

    def _capture(self, coordinates: Coordinates) -> CapturedShape:
        self.captured = CapturedShape(self.geometry_type, coordinates, self.surface)
        self.state = CaptureState.CAPTURED
        self._vertices = []
        self.surface = None
        logger.info("%s captured on %s surface", self.captured.type, self.captured.surface.value)
        return self.captured

    def _clear_buffer(self) -> None:
        had_vertices = bool(self._vertices)
        self._vertices = []
        if had_vertices:
            self._preview()

    def _cancel_timer(self) -> None:
        if self._finish_timer is not None:
            self._finish_timer.cancel()
            self._finish_timer = None

    def _preview(self) -> None:
        if self.on_preview and self.surface is not None:
            self.on_preview(self.surface, self.geometry_type, tuple(self._vertices))
