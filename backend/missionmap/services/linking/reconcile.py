# backend/missionmap/services/linking/reconcile.py
"""
ルール ⇔ 形状のリンク整合処理（純粋関数）。

- Rule.geometry_id が唯一の正。MissionGeometry.rule_id はここでのみ書き換える
- 各関数は入力を変更せず、新しい形状リストと（必要なら更新済みの）ルールを返す
- 呼び出し側は返り値でルール・形状ストアを同時に差し替える
"""
from __future__ import annotations
import logging
from typing import Iterable, List, NamedTuple, Optional, Tuple

from missionmap.schemas.geometry import MissionGeometry
from missionmap.schemas.rule import Rule

logger = logging.getLogger(__name__)


class LinkResult(NamedTuple):
    rule: Rule
    geometries: List[MissionGeometry]


def _with_rule_id(g: MissionGeometry, rule_id: Optional[str]) -> MissionGeometry:
    if g.rule_id == rule_id:
        return g
    return g.model_copy(update={"rule_id": rule_id})


def _adopt_new_geometry(geometries, rule: Rule, new_geometry: Optional[MissionGeometry]):
    if new_geometry is None:
        return list(geometries), rule
    claimed = _with_rule_id(new_geometry, rule.id)
    rule = rule.model_copy(update={"geometry_id": claimed.id})
    return [*geometries, claimed], rule


def link_created(
    geometries: Iterable[MissionGeometry],
    rule: Rule,
    new_geometry: Optional[MissionGeometry] = None,
) -> LinkResult:
    """
    新規ルールのリンク。
    - new_geometry（採番済み）があればそれをルールに紐付ける
    - なければ rule.geometry_id の既存形状の rule_id を設定（所有者の再検証はしない）
    """
    geoms, rule = _adopt_new_geometry(geometries, rule, new_geometry)
    if new_geometry is None and rule.geometry_id:
        geoms = [_with_rule_id(g, rule.id) if g.id == rule.geometry_id else g for g in geoms]
    return LinkResult(rule, geoms)


def link_updated(
    geometries: Iterable[MissionGeometry],
    rule: Rule,
    new_geometry: Optional[MissionGeometry] = None,
) -> LinkResult:
    """
    既存ルール更新時のリンク。外す（detach）と付ける（attach）を同じ走査で適用する。
    """
    geoms, rule = _adopt_new_geometry(geometries, rule, new_geometry)
    out: List[MissionGeometry] = []
    for g in geoms:
        if rule.geometry_id and g.id == rule.geometry_id:
            out.append(_with_rule_id(g, rule.id))
        elif g.rule_id == rule.id:
            out.append(_with_rule_id(g, None))
        else:
            out.append(g)
    return LinkResult(rule, out)


def unlink_deleted(geometries: Iterable[MissionGeometry], rule_id: str) -> List[MissionGeometry]:
    # 形状そのものは削除しない
    return [_with_rule_id(g, None) if g.rule_id == rule_id else g for g in geometries]


def derive_links(rules: Iterable[Rule], geometries: Iterable[MissionGeometry]) -> List[MissionGeometry]:
    """Rule.geometry_id から全形状の逆参照を作り直す（再読み込み時）。"""
    owner = {}
    for r in rules:
        if not r.geometry_id:
            continue
        if r.geometry_id in owner:
            logger.warning(
                "geometry %s referenced by rules %s and %s; keeping %s",
                r.geometry_id, owner[r.geometry_id], r.id, owner[r.geometry_id],
            )
            continue
        owner[r.geometry_id] = r.id
    return [_with_rule_id(g, owner.get(g.id)) for g in geometries]


def reload_links(rules: Iterable[Rule], geometries: Iterable[MissionGeometry]) -> Tuple[List[Rule], List[MissionGeometry]]:
    """
    保存済みデータからルールと形状の両方を組み直す。
    - 先に参照したルール以外の geometry_id は外す（1形状に1ルール）
    - 存在しない形状を指す geometry_id も外す
    """
    rules = list(rules)
    geometries = derive_links(rules, geometries)
    owned = {g.id: g.rule_id for g in geometries if g.rule_id}
    out: List[Rule] = []
    for r in rules:
        if r.geometry_id and owned.get(r.geometry_id) != r.id:
            logger.warning("rule %s loses geometry %s on reload", r.id, r.geometry_id)
            r = r.model_copy(update={"geometry_id": None})
        out.append(r)
    return out, geometries
