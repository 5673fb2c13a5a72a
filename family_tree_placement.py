"""
Component placement for family tree layouts.
Places each root component at an absolute x offset, pulling related components
together through anchors and resolving overlaps with a directional collision probe.
"""

import logging
from typing import Dict, List, Tuple, Any, Optional

from family_tree_config import (
    APPEND_GAP_FACTOR,
    BASE_X,
    BASE_Y,
    MAX_PLACEMENT_ROUNDS,
    OPPOSITE_SEARCH_AFTER,
    SEARCH_LIMIT,
    SEARCH_STEP,
    LayoutConfig,
)
from family_tree_connectors import build_connectors
from family_tree_ghosts import resolve_ghosts

logger = logging.getLogger(__name__)

# Alignment shifts this small are not worth moving a whole component for.
ALIGN_THRESHOLD = 10

Position = Tuple[float, float]


class RootLayout():

    def __init__(self, root_node, relative_positions: Dict[str, Position]):
        self.root_node = root_node
        self.id = root_node.person.GetId()
        self.relative_positions = relative_positions
        self.width = root_node.total_width
        self.anchors = []
        self.placed = False
        self.final_x = 0.0

    def __repr__(self):
        state = f"x={self.final_x}" if self.placed else "unplaced"
        return f"RootLayout({self.id!r}, width={self.width}, {state})"


def find_anchors(family_tree, layout: RootLayout) -> List[str]:
    """Ids outside the component linked by a child, partner or parent edge to someone inside it."""
    anchors = []
    for pid in layout.relative_positions:
        person = family_tree.GetPerson(pid)
        if person is None:
            continue
        for other in person.Children + person.Partners + person.Parents:
            if other in layout.relative_positions or other in anchors:
                continue
            if other in family_tree:
                anchors.append(other)
    return anchors


def _collides(ax: float, ay: float, bx: float, by: float, config: LayoutConfig) -> bool:
    if abs(by - ay) >= config.node_height:
        return False
    return ax < bx + config.node_width + config.horizontal_gap and ax + config.node_width + config.horizontal_gap > bx


def check_fit(layout: RootLayout, target_x: float, placed: Dict[str, Position], config: LayoutConfig) -> Tuple[bool, int]:
    """
    Test the component at target_x against everyone already placed.
    Returns (fits, push_dir); push_dir > 0 means the obstacles sit mostly to
    the left, so moving right is the better escape.
    """
    push_dir = 0
    collisions = 0
    for rel_x, rel_y in layout.relative_positions.values():
        abs_x = target_x + rel_x
        abs_y = BASE_Y + rel_y
        for px, py in placed.values():
            if not _collides(abs_x, abs_y, px, py, config):
                continue
            collisions += 1
            if abs_x + config.node_width / 2 > px + config.node_width / 2:
                push_dir += 1
            else:
                push_dir -= 1
    return collisions == 0, push_dir


def _score(layout: RootLayout, placed: Dict[str, Position]) -> Tuple[int, Optional[float]]:
    placed_anchors = [placed[a] for a in layout.anchors if a in placed]
    if placed_anchors:
        avg_x = sum(x for x, _ in placed_anchors) / len(placed_anchors)
        return 10, avg_x - layout.width / 2
    if layout.anchors:
        # Wait for the anchors to land first.
        return -5, None
    return 1, None


def _search_x(layout: RootLayout, desired_x: float, placed: Dict[str, Position], config: LayoutConfig) -> Optional[float]:
    fits, push_dir = check_fit(layout, desired_x, placed, config)
    if fits:
        return desired_x

    direction = 1 if push_dir >= 0 else -1
    offset = 0
    while offset < SEARCH_LIMIT:
        offset += SEARCH_STEP
        x = desired_x + offset * direction
        if check_fit(layout, x, placed, config)[0]:
            return x
        if offset > OPPOSITE_SEARCH_AFTER:
            x = desired_x - offset * direction
            if check_fit(layout, x, placed, config)[0]:
                return x
    return None


def _append_x(root_layouts: List[RootLayout], config: LayoutConfig) -> float:
    placed = [l for l in root_layouts if l.placed]
    if not placed:
        return float(BASE_X)
    right = max([BASE_X] + [l.final_x + l.width for l in placed])
    return right + config.horizontal_gap * APPEND_GAP_FACTOR


def place_components(root_layouts: List[RootLayout], config: LayoutConfig) -> Dict[str, Position]:
    """
    Greedy placement, one component per round, capped at MAX_PLACEMENT_ROUNDS.
    Components ready to attach to placed anchors go first, left to right;
    independent trees are appended on the right. Returns absolute positions.
    """
    positions = {}
    rounds = 0
    while any(not l.placed for l in root_layouts) and rounds < MAX_PLACEMENT_ROUNDS:
        rounds += 1

        candidates = []
        for layout in root_layouts:
            if layout.placed:
                continue
            score, desired_x = _score(layout, positions)
            candidates.append((score, desired_x, layout))
        candidates.sort(key=lambda c: (-c[0], c[1] if c[1] is not None else 0.0))
        _, desired_x, layout = candidates[0]

        place_x = None
        if desired_x is not None:
            place_x = _search_x(layout, desired_x, positions, config)
            if place_x is None:
                logger.debug("No free slot near anchors for %s, appending", layout.id)
        if place_x is None:
            place_x = _append_x(root_layouts, config)

        layout.placed = True
        layout.final_x = place_x
        for pid, (rel_x, rel_y) in layout.relative_positions.items():
            positions[pid] = (place_x + rel_x, BASE_Y + rel_y)

    unplaced = [l.id for l in root_layouts if not l.placed]
    if unplaced:
        logger.warning("Placement stopped after %d rounds; %d components left unplaced: %s", rounds, len(unplaced), unplaced)
    logger.debug("Placed %d components in %d rounds", len(root_layouts) - len(unplaced), rounds)
    return positions


def shift_to_non_negative(positions: Dict[str, Position]) -> float:
    """Move everything right so no x is negative. Returns the shift applied."""
    if not positions:
        return 0.0
    min_x = min(x for x, _ in positions.values())
    if min_x >= 0:
        return 0.0
    dx = -min_x
    for pid, (x, y) in positions.items():
        positions[pid] = (x + dx, y)
    return dx


def can_safely_shift(positions: Dict[str, Position], moving_ids, shift_x: float, config: LayoutConfig) -> bool:
    """True if moving moving_ids by shift_x collides with no one outside the group."""
    moving = [positions[m] for m in moving_ids if m in positions]
    for pid, (x, y) in positions.items():
        if pid in moving_ids:
            continue
        for mx, my in moving:
            if _collides(mx + shift_x, my, x, y, config):
                return False
    return True


def align_components(result: Dict[str, Any], family_tree, config: Optional[LayoutConfig] = None) -> List[str]:
    """
    Optional post-pass: shift whole components so their root sits centred over
    its children placed in other components, when that causes no collision.
    Largest shifts are tried first. Updates result in place and returns the
    root ids that moved.
    """
    config = config or LayoutConfig()
    positions = result["positions"]

    moves = []
    for component in result["components"]:
        if not component["placed"]:
            continue
        root_id = component["root"]
        members = set(component["members"])
        root = family_tree.GetPerson(root_id)
        if root is None or root_id not in positions:
            continue
        external = [positions[c] for c in root.Children if c not in members and c in positions]
        if not external:
            continue

        min_x = min(x for x, _ in external)
        max_x = max(x + config.node_width for x, _ in external)
        shift = (min_x + max_x) / 2 - (positions[root_id][0] + config.node_width / 2)
        if abs(shift) > ALIGN_THRESHOLD:
            moves.append((abs(shift), component, members, shift))

    moves.sort(key=lambda m: -m[0])

    moved = []
    for _, component, members, shift in moves:
        if not can_safely_shift(positions, members, shift, config):
            logger.debug("Could not safely align %s (collision detected)", component["root"])
            continue
        for pid in members:
            if pid in positions:
                x, y = positions[pid]
                positions[pid] = (x + shift, y)
        component["offset"] += shift
        moved.append(component["root"])
        logger.debug("Aligned %s by %d", component["root"], round(shift))

    dx = shift_to_non_negative(positions)
    if dx:
        for component in result["components"]:
            if component["placed"]:
                component["offset"] += dx

    result["ghosts"] = resolve_ghosts(family_tree, positions, config)
    result["connectors"] = build_connectors(family_tree, positions, result["ghosts"], config)
    return moved
