# backend/missionmap/schemas/geometry.py
from pydantic import BaseModel, model_validator
from typing import Optional

from missionmap.errors import DegenerateShape
from .commons import Coordinates, GeometryType, MIN_POLYGON_VERTICES


def check_shape(geometry_type: str, coordinates) -> None:
    """形状の縮退チェック（これ以外の幾何検証は行わない）"""
    if geometry_type == "Point":
        if not isinstance(coordinates, tuple) or len(coordinates) != 2:
            raise DegenerateShape("Point requires exactly one coordinate pair")
    elif geometry_type == "Polygon":
        if not isinstance(coordinates, list) or len(coordinates) < MIN_POLYGON_VERTICES:
            raise DegenerateShape(f"Polygon requires at least {MIN_POLYGON_VERTICES} vertices")
    else:
        raise DegenerateShape(f"unsupported geometry type: {geometry_type}")


class MissionGeometry(BaseModel):
    id: str
    mission_id: str
    name: str
    type: GeometryType
    coordinates: Coordinates
    rule_id: Optional[str] = None  # ルールへの逆参照（リンク整合処理のみが書き換える）

    @model_validator(mode="after")
    def _not_degenerate(self):
        check_shape(self.type, self.coordinates)
        return self


class GeometryIn(BaseModel):
    id: Optional[str] = None
    name: str
    type: GeometryType
    coordinates: Coordinates

    @model_validator(mode="after")
    def _not_degenerate(self):
        check_shape(self.type, self.coordinates)
        return self
