# backend/missionmap/services/stats/summary.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import Iterable, Sequence

from pyproj import Geod
from shapely.geometry import Polygon

from missionmap.schemas.geometry import MissionGeometry
from missionmap.schemas.rule import Rule
from missionmap.schemas.stats import MissionStats

_GEOD = Geod(ellps="WGS84")
DOCUMENTED_MIN_CHARS = 50


def polygon_area_m2(coords: Sequence) -> float:
    # (lat,lng) → (lon,lat)
    poly = Polygon([(lng, lat) for lat, lng in coords])
    area, _perimeter = _GEOD.geometry_area_perimeter(poly)
    return abs(area)


def _pct(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def mission_stats(rules: Iterable[Rule], geometries: Iterable[MissionGeometry]) -> MissionStats:
    rules = list(rules)
    geometries = list(geometries)
    linked = sum(1 for g in geometries if g.rule_id)
    documented = sum(1 for r in rules if len(r.description or "") > DOCUMENTED_MIN_CHARS)
    area = sum(polygon_area_m2(g.coordinates) for g in geometries if g.type == "Polygon")
    return MissionStats(
        rule_count=len(rules),
        geometry_count=len(geometries),
        linked_geometry_count=linked,
        unlinked_geometry_count=len(geometries) - linked,
        coverage_percentage=_pct(linked, len(geometries)),
        rule_density=round(linked / len(rules), 2) if rules else 0.0,
        documentation_quality=_pct(documented, len(rules)),
        total_area_m2=round(area, 1),
        last_updated=datetime.now(timezone.utc),
    )
