import logging
import random

from missionmap.schemas.geometry import MissionGeometry
from missionmap.schemas.rule import Rule
from missionmap.services.capture.session import CapturedShape, Surface
from missionmap.services.linking.reconcile import (
    derive_links, link_created, link_updated, reload_links, unlink_deleted,
)


def geo(gid, rule_id=None):
    return MissionGeometry(id=gid, mission_id="m1", name=gid, type="Point", coordinates=(1.0, 2.0), rule_id=rule_id)


def rule(rid, geometry_id=None):
    return Rule(id=rid, mission_id="m1", name=rid, geometry_id=geometry_id)


def owners(geometries):
    return {g.id: g.rule_id for g in geometries}


def assert_links_consistent(rules, geometries):
    claimed = {}
    for r in rules:
        if r.geometry_id:
            assert r.geometry_id not in claimed, f"{r.geometry_id} claimed twice"
            claimed[r.geometry_id] = r.id
    for g in geometries:
        assert g.rule_id == claimed.get(g.id)


def test_create_with_new_geometry_links_both_sides():
    result = link_created([geo("g1")], rule("r9"), geo("g-new"))

    assert result.rule.geometry_id == "g-new"
    assert owners(result.geometries) == {"g1": None, "g-new": "r9"}


def test_create_with_existing_geometry_claims_it():
    result = link_created([geo("g1"), geo("g2")], rule("r9", "g2"))

    assert result.rule.geometry_id == "g2"
    assert owners(result.geometries) == {"g1": None, "g2": "r9"}


def test_update_switch_frees_old_and_claims_new():
    geometries = [geo("g1", "r1"), geo("g2")]

    result = link_updated(geometries, rule("r1", "g2"))

    assert owners(result.geometries) == {"g1": None, "g2": "r1"}
    # 入力は変更されない
    assert owners(geometries) == {"g1": "r1", "g2": None}


def test_update_with_same_geometry_changes_nothing():
    geometries = [geo("g1", "r1"), geo("g2"), geo("g3", "r2")]

    result = link_updated(geometries, rule("r1", "g1"))

    assert all(a is b for a, b in zip(result.geometries, geometries))


def test_update_to_no_geometry_detaches():
    result = link_updated([geo("g1", "r1")], rule("r1"))
    assert owners(result.geometries) == {"g1": None}


def test_update_with_new_geometry_replaces_old_link():
    result = link_updated([geo("g1", "r1")], rule("r1", "g1"), geo("g-new"))

    assert result.rule.geometry_id == "g-new"
    assert owners(result.geometries) == {"g1": None, "g-new": "r1"}


def test_delete_clears_back_reference_and_keeps_geometry():
    g = geo("g1", "r1")
    out = unlink_deleted([g, geo("g2", "r2")], "r1")

    assert owners(out) == {"g1": None, "g2": "r2"}
    assert out[0].model_dump(exclude={"rule_id"}) == g.model_dump(exclude={"rule_id"})


def test_derive_links_rebuilds_from_rules():
    out = derive_links([rule("r1", "g2"), rule("r2")], [geo("g1", "stale"), geo("g2")])
    assert owners(out) == {"g1": None, "g2": "r1"}


def test_derive_links_keeps_first_claimant(caplog):
    with caplog.at_level(logging.WARNING):
        out = derive_links([rule("r1", "g1"), rule("r2", "g1")], [geo("g1")])

    assert owners(out) == {"g1": "r1"}
    assert "referenced by rules r1 and r2" in caplog.text


def test_reload_links_clears_losing_and_dangling_references(caplog):
    stored = [rule("r1", "g1"), rule("r2", "g1"), rule("r3", "g-gone"), rule("r4", "g2")]

    with caplog.at_level(logging.WARNING):
        rules, geometries = reload_links(stored, [geo("g1"), geo("g2")])

    assert {r.id: r.geometry_id for r in rules} == {"r1": "g1", "r2": None, "r3": None, "r4": "g2"}
    assert owners(geometries) == {"g1": "r1", "g2": "r4"}
    assert_links_consistent(rules, geometries)
    assert "rule r2 loses geometry g1" in caplog.text
    # 入力は変更されない
    assert stored[1].geometry_id == "g1"


def test_links_stay_exclusive_over_random_operations(mission):
    rng = random.Random(20240611)
    capture_n = 0

    def offered(own_id=None):
        return [g.id for g in mission.geometries if g.rule_id is None or g.rule_id == own_id]

    def choose_link(own_id=None):
        nonlocal capture_n
        pick = rng.choice(["none", "existing", "new"])
        if pick == "existing" and offered(own_id):
            return rng.choice(offered(own_id)), None
        if pick == "new":
            capture_n += 1
            return None, CapturedShape("Point", (float(capture_n), 0.0), Surface.PRIMARY)
        return None, None

    for step in range(300):
        op = rng.choice(["create", "update", "delete"])
        rules = mission.rules.all()
        if op == "create" or not rules:
            geometry_id, capture = choose_link()
            mission.save_rule(rule(f"r-rand-{step}", geometry_id), capture, is_new=True)
        elif op == "update":
            target = rng.choice(rules)
            geometry_id, capture = choose_link(target.id)
            mission.save_rule(target.model_copy(update={"geometry_id": geometry_id}), capture, is_new=False)
        else:
            mission.delete_rule(rng.choice(rules).id)

        assert_links_consistent(mission.rules.all(), mission.geometries.all())
