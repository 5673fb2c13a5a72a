"""
Family tree layout engine.
Provides generation ranks, couple-block subtree sizing, root clustering and the full layout pass.
"""

import logging
from collections import deque
from typing import Dict, List, Tuple, Any, Optional, Set

from family_tree_config import LayoutConfig
from family_tree_connectors import build_connectors
from family_tree_ghosts import resolve_ghosts
from family_tree_placement import RootLayout, find_anchors, place_components, shift_to_non_negative

logger = logging.getLogger(__name__)


class LayoutNode():
    """
    One couple block: a primary person, the partners placed beside them,
    and the child blocks nested underneath.
    """

    def __init__(self, person, partners):
        self.person = person
        self.partners = partners
        self.children = []
        self.couple_width = 0.0
        self.total_width = 0.0

    def __repr__(self):
        return f"LayoutNode({self.person.GetId()!r}, partners={len(self.partners)}, children={len(self.children)})"


def assign_generations(family_tree) -> Dict[str, int]:
    """
    Breadth-first generation ranks, seeded from every person not yet reached
    so each disconnected cluster gets its own wave. First assignment wins.
    Normalized so the smallest generation is 0.
    """
    gen = {}
    for seed in family_tree.people:
        if seed.GetId() in gen:
            continue
        gen[seed.GetId()] = 0
        q = deque([seed.GetId()])
        while q:
            pid = q.popleft()
            person = family_tree.GetPersonFromID(pid)
            g = gen[pid]
            for partner_id in family_tree.GetPartners(pid):
                if partner_id not in gen:
                    gen[partner_id] = g
                    q.append(partner_id)
            for child_id in person.Children:
                if child_id in family_tree and child_id not in gen:
                    gen[child_id] = g + 1
                    q.append(child_id)
            for parent_id in person.Parents:
                if parent_id in family_tree and parent_id not in gen:
                    gen[parent_id] = g - 1
                    q.append(parent_id)

    if gen:
        min_g = min(gen.values())
        if min_g != 0:
            for pid in gen:
                gen[pid] -= min_g
    logger.debug("Assigned %d people to %d generations", len(gen), len(set(gen.values())))
    return gen


def couple_width(partner_count: int, config: LayoutConfig) -> float:
    return (1 + partner_count) * config.node_width + partner_count * config.horizontal_gap


def children_width(children: List[LayoutNode], config: LayoutConfig) -> float:
    if not children:
        return 0.0
    return sum(c.total_width for c in children) + (len(children) - 1) * config.horizontal_gap


def _birth_key(person) -> str:
    # ISO dates compare correctly as strings; undated people sort first.
    return str(person.BirthDate) if person.BirthDate else ""


def _centripetal_weight(person) -> int:
    # Partnered daughters lean left, partnered sons lean right, singles stay central.
    if not person.HasPartner():
        return 0
    if person.Gender == "F":
        return -1
    if person.Gender == "M":
        return 1
    return 0


def sort_children(children: List[Any]) -> List[Any]:
    return sorted(children, key=lambda c: (_centripetal_weight(c), _birth_key(c)))


def build_subtree(family_tree, person_id: str, visited: Set[str], config: LayoutConfig) -> Optional[LayoutNode]:
    """
    Build the couple block for person_id and everything below it.
    Every person consumed is added to visited; returns None if person_id
    is unknown or already taken.
    """
    if person_id in visited or person_id not in family_tree:
        return None
    visited.add(person_id)
    person = family_tree.GetPersonFromID(person_id)

    partners = [p for p in family_tree.GetPeople(family_tree.GetPartners(person_id)) if p.GetId() not in visited]
    for p in partners:
        visited.add(p.GetId())

    node = LayoutNode(person, partners)
    node.couple_width = couple_width(len(partners), config)

    child_ids = []
    for member in [person] + partners:
        for cid in member.Children:
            if cid not in child_ids and cid in family_tree:
                child_ids.append(cid)

    for child in sort_children(family_tree.GetPeople(child_ids)):
        child_node = build_subtree(family_tree, child.GetId(), visited, config)
        if child_node is not None:
            node.children.append(child_node)

    node.total_width = max(node.couple_width, children_width(node.children, config))
    return node


def collect_descendants(family_tree, person_id: str) -> Set[str]:
    """Person plus everyone reachable through child links."""
    found = set()
    stack = [person_id]
    while stack:
        pid = stack.pop()
        if pid in found:
            continue
        found.add(pid)
        person = family_tree.GetPerson(pid)
        if person is not None:
            stack.extend(c for c in person.Children if c not in found)
    return found


def cluster_roots(family_tree, generations: Dict[str, int]) -> List[List[Any]]:
    """
    Group generation-0 people so that roots sharing any descendant end up in
    one cluster, each cluster ordered by birth date. Clusters keep discovery order.
    """
    potential_roots = [p for p in family_tree.people if generations.get(p.GetId()) == 0]
    descendants = {p.GetId(): collect_descendants(family_tree, p.GetId()) for p in potential_roots}

    clusters = []
    assigned = set()
    for root in potential_roots:
        if root.GetId() in assigned:
            continue
        assigned.add(root.GetId())
        cluster = [root]
        cluster_desc = set(descendants[root.GetId()])

        # Repeat until stable so a root joining late can pull in earlier ones.
        grew = True
        while grew:
            grew = False
            for other in potential_roots:
                if other.GetId() in assigned:
                    continue
                if cluster_desc & descendants[other.GetId()]:
                    cluster.append(other)
                    assigned.add(other.GetId())
                    cluster_desc |= descendants[other.GetId()]
                    grew = True

        cluster.sort(key=_birth_key)
        clusters.append(cluster)
    return clusters


def build_root_nodes(family_tree, generations: Dict[str, int], config: LayoutConfig) -> List[LayoutNode]:
    visited = set()
    roots = []
    for cluster in cluster_roots(family_tree, generations):
        for person in cluster:
            node = build_subtree(family_tree, person.GetId(), visited, config)
            if node is not None:
                roots.append(node)

    # Anyone still unvisited sits in a cycle or a cluster with no generation-0 member.
    for person in family_tree.people:
        node = build_subtree(family_tree, person.GetId(), visited, config)
        if node is not None:
            roots.append(node)

    logger.debug("Built %d root components", len(roots))
    return roots


def relative_positions(root: LayoutNode, config: LayoutConfig) -> Dict[str, Tuple[float, float]]:
    """
    Lay out a root component in its own coordinate space, starting at (0, 0).
    Couples are centred over their span; children are centred under the couple.
    """
    positions = {}

    def _place(node, x, y):
        couple_x = x + (node.total_width - node.couple_width) / 2
        positions[node.person.GetId()] = (couple_x, y)

        partner_x = couple_x + config.node_width + config.horizontal_gap
        for p in node.partners:
            positions[p.GetId()] = (partner_x, y)
            partner_x += config.node_width + config.horizontal_gap

        child_x = x + (node.total_width - children_width(node.children, config)) / 2
        for child in node.children:
            _place(child, child_x, y + config.generation_gap)
            child_x += child.total_width + config.horizontal_gap

    _place(root, 0.0, 0.0)
    return positions


def layout_bounds(positions: Dict[str, Tuple[float, float]], config: LayoutConfig) -> Optional[Tuple[float, float, float, float]]:
    """(min_x, min_y, max_x, max_y) of all node boxes, or None if nothing is placed."""
    if not positions:
        return None
    xs = [x for x, _ in positions.values()]
    ys = [y for _, y in positions.values()]
    return (min(xs), min(ys), max(xs) + config.node_width, max(ys) + config.node_height)


def compute_layout(family_tree, config: Optional[LayoutConfig] = None) -> Dict[str, Any]:
    """
    Compute canonical positions, ghost positions and connectors for every person.
    Repairs relationship data in place first. Never raises for bad data: the
    result may be partial, see "unplaced".
    """
    config = config or LayoutConfig()
    result = {
        "positions": {},
        "ghosts": {},
        "connectors": [],
        "generations": {},
        "components": [],
        "unplaced": [],
    }
    if not family_tree.people:
        return result

    family_tree.RepairRelationships()
    generations = assign_generations(family_tree)

    root_layouts = []
    for root in build_root_nodes(family_tree, generations, config):
        layout = RootLayout(root, relative_positions(root, config))
        layout.anchors = find_anchors(family_tree, layout)
        root_layouts.append(layout)

    positions = place_components(root_layouts, config)
    dx = shift_to_non_negative(positions)
    if dx:
        for layout in root_layouts:
            if layout.placed:
                layout.final_x += dx

    ghosts = resolve_ghosts(family_tree, positions, config)

    result["positions"] = positions
    result["ghosts"] = ghosts
    result["connectors"] = build_connectors(family_tree, positions, ghosts, config)
    result["generations"] = generations
    result["components"] = [
        {
            "root": layout.id,
            "members": list(layout.relative_positions),
            "width": layout.width,
            "offset": layout.final_x,
            "placed": layout.placed,
        }
        for layout in root_layouts
    ]
    result["unplaced"] = [layout.id for layout in root_layouts if not layout.placed]
    return result
