# backend/missionmap/errors.py


class CaptureError(Exception):
    """形状キャプチャ／リンク処理のエラー基底クラス"""


class SurfaceBusy(CaptureError):
    def __init__(self, requested, active):
        super().__init__(f"cannot draw on {requested.value}: {active.value} surface is drawing")
        self.requested = requested
        self.active = active


class DegenerateShape(CaptureError, ValueError):
    """座標が1組でない Point、または頂点が3未満の Polygon"""


class DanglingSelection(CaptureError):
    def __init__(self, geometry_id: str):
        super().__init__(f"geometry {geometry_id} is not available for selection")
        self.geometry_id = geometry_id


class PersistenceError(Exception):
    """永続化層（DB・ネットワーク）からの失敗"""
