"""
Connector list for family tree layouts.
Describes the partner and parent-child lines a renderer should draw, with
split relationships routed to their ghost instead of the canonical node.
"""

import logging
from typing import Dict, List, Tuple, Any, Iterable, Optional

from family_tree_config import LayoutConfig

logger = logging.getLogger(__name__)

LONG_CONNECTOR_THRESHOLD = 500


def _partner_split(family_tree, a: str, b: str) -> bool:
    return family_tree.IsLinkSplit(a, "partner", b) or family_tree.IsLinkSplit(b, "partner", a)


def _child_split(family_tree, child_id: str, parent_ids: List[str]) -> bool:
    for parent_id in parent_ids:
        if family_tree.IsLinkSplit(child_id, "parent", parent_id) or family_tree.IsLinkSplit(parent_id, "child", child_id):
            return True
    return False


def _horizontal_run(parents: List[Tuple[float, float]], child: Tuple[float, float], config: LayoutConfig) -> float:
    parent_center = (min(x for x, _ in parents) + max(x for x, _ in parents) + config.node_width) / 2
    return abs(child[0] + config.node_width / 2 - parent_center)


def build_connectors(family_tree, positions: Dict[str, Tuple[float, float]], ghosts: Dict[str, Dict[str, Any]], config: Optional[LayoutConfig] = None) -> List[Dict[str, Any]]:
    """
    Partner lines once per pair, one child line per child from all its placed
    parents, then one short line per ghost.
    """
    config = config or LayoutConfig()
    connectors = []

    drawn_pairs = set()
    for person in family_tree.people:
        pid = person.GetId()
        if pid not in positions:
            continue
        for partner_id in family_tree.GetPartners(pid):
            pair = frozenset((pid, partner_id))
            if partner_id not in positions or pair in drawn_pairs:
                continue
            drawn_pairs.add(pair)
            if _partner_split(family_tree, pid, partner_id):
                continue
            connectors.append({"type": "partner", "ids": [pid, partner_id]})

    for child in family_tree.people:
        cid = child.GetId()
        if cid not in positions:
            continue
        parents = [p for p in child.Parents if p in positions]
        if not parents or _child_split(family_tree, cid, child.Parents):
            continue
        connectors.append({"type": "child", "parents": parents, "child": cid})

        run = _horizontal_run([positions[p] for p in parents], positions[cid], config)
        if run > LONG_CONNECTOR_THRESHOLD:
            logger.warning("Long connector to %s: horizontal run %d", cid, round(run))

    for gid, ghost in ghosts.items():
        if ghost["type"] == "parent":
            connectors.append({"type": "child", "parents": [ghost["linked_id"]], "child": gid, "ghost": gid})
        elif ghost["type"] == "partner":
            connectors.append({"type": "partner", "ids": [ghost["linked_id"], gid], "ghost": gid})
        elif ghost["type"] == "child":
            connectors.append({"type": "child", "parents": [gid], "child": ghost["linked_id"], "ghost": gid})

    return connectors


def connector_endpoints(connector: Dict[str, Any]) -> List[str]:
    if connector["type"] == "partner":
        return list(connector["ids"])
    return list(connector["parents"]) + [connector["child"]]


def connectors_for_path(connectors: List[Dict[str, Any]], related_ids: Iterable[str]) -> List[Dict[str, Any]]:
    """Connectors with at least two endpoints among related_ids, for path highlighting."""
    related = set(related_ids)
    return [c for c in connectors if sum(1 for e in connector_endpoints(c) if e in related) >= 2]
