"""
Ghost nodes for split links.
A ghost is a render-only duplicate of a person, drawn next to the person on the
other end of a split relationship. Canonical positions are never touched.
"""

import logging
from typing import Dict, Tuple, Any, Optional

from family_tree_config import LayoutConfig

logger = logging.getLogger(__name__)


def ghost_id(person_id: str, split) -> str:
    return f"ghost-{split.Type}-{person_id}-{split.LinkedPersonId}"


def ghost_position(split_type: str, linked_pos: Tuple[float, float], config: LayoutConfig) -> Optional[Tuple[float, float]]:
    lx, ly = linked_pos
    if split_type == "parent":
        # Where the child would sit under the parent.
        return (lx, ly + config.generation_gap)
    if split_type == "partner":
        return (lx + config.node_width + config.horizontal_gap, ly)
    if split_type == "child":
        # Where the parent would sit above the child.
        return (lx, ly - config.generation_gap)
    return None


def resolve_ghosts(family_tree, positions: Dict[str, Tuple[float, float]], config: LayoutConfig) -> Dict[str, Dict[str, Any]]:
    ghosts = {}
    for person in family_tree.people:
        for split in person.SplitLinks:
            linked_pos = positions.get(split.LinkedPersonId)
            if split.LinkedPersonId not in family_tree or linked_pos is None:
                logger.debug("Skipping split link %s -> %s: no placed person", person.GetId(), split.LinkedPersonId)
                continue
            pos = ghost_position(split.Type, linked_pos, config)
            if pos is None:
                logger.debug("Skipping split link of unknown type %r on %s", split.Type, person.GetId())
                continue

            main = positions.get(person.GetId())
            ghosts[ghost_id(person.GetId(), split)] = {
                "id": person.GetId(),
                "linked_id": split.LinkedPersonId,
                "type": split.Type,
                "ghost_context": split.GhostContext,
                "position": pos,
                "direction": "left" if main is not None and main[0] < pos[0] else "right",
            }
    return ghosts
