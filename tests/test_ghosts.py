"""Tests for ghost positions of split links and the connector list."""

import logging

from family_tree_connectors import build_connectors, connectors_for_path
from family_tree_ghosts import ghost_id, resolve_ghosts
from family_tree_layout import compute_layout
from FamilyTree import SplitLink


def _child_lines(connectors, child_id):
    return [c for c in connectors if c["type"] == "child" and c["child"] == child_id]


class TestGhostPositions:
    def test_split_parent_link(self, build_tree, config):
        """The ghost sits one generation under the parent, where the child would be."""
        tree = build_tree({
            "b": {"children": ["a"]},
            "a": {"splits": [("parent", "b", "child")]},
        })

        result = compute_layout(tree, config)
        bx, by = result["positions"]["b"]
        gid = ghost_id("a", SplitLink("parent", "b"))

        assert gid == "ghost-parent-a-b"
        assert result["ghosts"][gid]["position"] == (bx, by + config.generation_gap)
        assert result["ghosts"][gid]["ghost_context"] == "child"
        assert _child_lines(result["connectors"], "a") == []
        assert _child_lines(result["connectors"], gid) == [
            {"type": "child", "parents": ["b"], "child": gid, "ghost": gid},
        ]

    def test_split_partner_link(self, build_tree, config):
        tree = build_tree({
            "a": {"partners": ["b"], "splits": [("partner", "b", "partner")]},
            "b": {},
        })

        result = compute_layout(tree, config)
        ghost = result["ghosts"]["ghost-partner-a-b"]

        assert result["positions"] == {"a": (100, 100), "b": (320, 100)}
        assert ghost["position"] == (540, 100)
        assert ghost["direction"] == "left"
        partner_lines = [c for c in result["connectors"] if c["type"] == "partner"]
        assert partner_lines == [{"type": "partner", "ids": ["b", "ghost-partner-a-b"], "ghost": "ghost-partner-a-b"}]

    def test_split_child_link(self, build_tree, config):
        """A parent split from a child gets a ghost one generation above the child."""
        tree = build_tree({
            "p": {"children": ["c"], "splits": [("child", "c", None)]},
            "c": {},
        })

        result = compute_layout(tree, config)
        gid = "ghost-child-p-c"

        assert result["ghosts"][gid]["position"] == (100, 100)
        assert _child_lines(result["connectors"], "c") == [
            {"type": "child", "parents": [gid], "child": "c", "ghost": gid},
        ]

    def test_canonical_positions_untouched(self, build_tree, config):
        plain = build_tree({"b": {"children": ["a"]}, "a": {}})
        split = build_tree({"b": {"children": ["a"]}, "a": {"splits": [("parent", "b", None)]}})

        assert compute_layout(split, config)["positions"] == compute_layout(plain, config)["positions"]

    def test_ghost_points_back_to_main_node(self, build_tree, config):
        tree = build_tree({"a": {"splits": [("partner", "b", None)]}, "b": {}})
        positions = {"a": (700, 100), "b": (100, 100)}

        ghosts = resolve_ghosts(tree, positions, config)

        assert ghosts["ghost-partner-a-b"]["position"] == (320, 100)
        assert ghosts["ghost-partner-a-b"]["direction"] == "right"

    def test_unresolvable_splits_are_skipped(self, build_tree, config):
        """Unknown people, unplaced people and unknown split types give no ghost."""
        tree = build_tree({
            "a": {"splits": [("parent", "missing", None), ("sibling", "b", None), ("child", "c", None)]},
            "b": {},
            "c": {},
        })

        assert resolve_ghosts(tree, {"a": (100, 100), "b": (340, 100)}, config) == {}


class TestConnectors:
    def test_couple_and_child_lines(self, build_tree, config):
        tree = build_tree({"a": {"partners": ["b"], "children": ["c"]}, "b": {"children": ["c"]}, "c": {}})

        result = compute_layout(tree, config)

        assert result["connectors"] == [
            {"type": "partner", "ids": ["a", "b"]},
            {"type": "child", "parents": ["a", "b"], "child": "c"},
        ]

    def test_co_parents_get_a_partner_line(self, build_tree, config):
        tree = build_tree({"m": {"children": ["k"]}, "f": {"children": ["k"]}, "k": {}})

        result = compute_layout(tree, config)

        assert {"type": "partner", "ids": ["m", "f"]} in result["connectors"]

    def test_unpositioned_people_are_skipped(self, build_tree, config):
        tree = build_tree({"p": {"children": ["c"]}, "c": {}})
        tree.RepairRelationships()

        assert build_connectors(tree, {"c": (100, 250)}, {}, config) == []

    def test_long_child_line_is_logged(self, build_tree, config, caplog):
        tree = build_tree({"p": {"children": ["c"]}, "c": {}})
        tree.RepairRelationships()

        with caplog.at_level(logging.WARNING, logger="family_tree_connectors"):
            connectors = build_connectors(tree, {"p": (0, 100), "c": (1000, 250)}, {}, config)

        assert connectors == [{"type": "child", "parents": ["p"], "child": "c"}]
        assert "Long connector to c" in caplog.text

    def test_connectors_for_path(self):
        connectors = [
            {"type": "partner", "ids": ["a", "b"]},
            {"type": "child", "parents": ["a", "b"], "child": "c"},
            {"type": "child", "parents": ["x"], "child": "y"},
        ]

        assert connectors_for_path(connectors, ["a", "c"]) == [connectors[1]]
        assert connectors_for_path(connectors, {"a", "b"}) == connectors[:2]
        assert connectors_for_path(connectors, []) == []
