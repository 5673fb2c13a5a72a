"""
GraphViz export for family tree layouts.
Turns a computed layout into a neato graph with every node pinned to its position.
"""

import logging
import sys

from graphviz import Graph

from FamilyTree import FamilyTree
from family_tree_config import LayoutConfig
from family_tree_layout import compute_layout

POINTS_PER_INCH = 72

MALE_FILL = "cornflowerblue"
FEMALE_FILL = "lightcoral"
OTHER_FILL = "lightgray"


def _node_name(id):
    # graphviz reads ':' in edge endpoints as a port separator
    return str(id).replace(":", "_")


def _fill_color(person):
    if person.Gender == "M":
        return MALE_FILL
    if person.Gender == "F":
        return FEMALE_FILL
    return OTHER_FILL


def _pos(x, y, config):
    # Box centre; graphviz y grows upwards.
    cx = x + config.node_width / 2
    cy = y + config.node_height / 2
    return f"{cx:.1f},{-cy:.1f}!"


def to_graphviz(layout, family_tree, config=None):
    """
    Returns a graphviz.Graph for a layout produced by compute_layout.
    Ghost nodes are dashed copies of the person they duplicate.
    """
    config = config or LayoutConfig()
    graph = Graph(
        comment="Ancestry",
        engine="neato",
        graph_attr={"splines": "ortho", "inputscale": str(POINTS_PER_INCH)},
        node_attr={
            "shape": "box",
            "style": "filled",
            "fixedsize": "true",
            "width": f"{config.node_width / POINTS_PER_INCH:.2f}",
            "height": f"{config.node_height / POINTS_PER_INCH:.2f}",
        },
        edge_attr={"dir": "none"},
    )

    for pid, (x, y) in layout["positions"].items():
        person = family_tree.GetPerson(pid)
        if person is None:
            continue
        color = _fill_color(person)
        graph.node(_node_name(pid), person.GetNodeLabel(), pos=_pos(x, y, config), fillcolor=color, color=color)

    for gid, ghost in layout["ghosts"].items():
        person = family_tree.GetPerson(ghost["id"])
        if person is None:
            continue
        x, y = ghost["position"]
        graph.node(
            _node_name(gid),
            person.GetFullName(),
            pos=_pos(x, y, config),
            style="dashed,filled",
            fillcolor="white",
            color=_fill_color(person),
        )

    for connector in layout["connectors"]:
        style = "dashed" if connector.get("ghost") else "solid"
        if connector["type"] == "partner":
            a, b = connector["ids"]
            graph.edge(_node_name(a), _node_name(b), color="black:invis:black", style=style)
        else:
            for parent_id in connector["parents"]:
                graph.edge(_node_name(parent_id), _node_name(connector["child"]), style=style)

    return graph


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    people_file = argv[0] if argv else "people.json"

    family_tree = FamilyTree.FromFile(people_file)
    layout = compute_layout(family_tree)
    print(to_graphviz(layout, family_tree).source)
    return 0


if __name__ == "__main__":
    sys.exit(main())
