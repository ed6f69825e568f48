# backend/missionmap/services/export/geojson.py
from __future__ import annotations
from typing import Dict, Iterable, Optional

from shapely.geometry import Point, Polygon, mapping

from missionmap.schemas.geometry import MissionGeometry
from missionmap.schemas.rule import Rule


def to_shape(geo: MissionGeometry):
    # 内部は (lat,lng)、GeoJSON は (lon,lat)
    if geo.type == "Point":
        lat, lng = geo.coordinates
        return Point(lng, lat)
    return Polygon([(lng, lat) for lat, lng in geo.coordinates])


def to_feature(geo: MissionGeometry, rule: Optional[Rule] = None) -> dict:
    return {
        "type": "Feature",
        "geometry": mapping(to_shape(geo)),
        "properties": {
            "geometry_id": geo.id,
            "mission_id": geo.mission_id,
            "name": geo.name,
            "geometry_type": geo.type,
            "rule_id": geo.rule_id,
            "rule_name": rule.name if rule else None,
            "has_rule": bool(geo.rule_id),
        },
    }


def feature_collection(geometries: Iterable[MissionGeometry], rules: Iterable[Rule]) -> dict:
    by_id: Dict[str, Rule] = {r.id: r for r in rules}
    feats = [to_feature(g, by_id.get(g.rule_id)) for g in geometries]
    return {"type": "FeatureCollection", "features": feats}
