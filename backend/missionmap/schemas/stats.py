# backend/missionmap/schemas/stats.py
from pydantic import BaseModel
from datetime import datetime


class MissionStats(BaseModel):
    rule_count: int
    geometry_count: int
    linked_geometry_count: int
    unlinked_geometry_count: int
    coverage_percentage: float  # 形状のうちルールに紐付いている割合
    rule_density: float  # 紐付いた形状数 / ルール数
    documentation_quality: float  # 説明文が50文字を超えるルールの割合
    total_area_m2: float
    last_updated: datetime
