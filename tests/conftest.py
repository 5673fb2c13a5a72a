"""Shared fixtures for family tree layout tests."""

import pytest

from FamilyTree import FamilyTree
from family_tree_config import LayoutConfig


def _record(pid, attrs):
    return {
        "id": pid,
        "firstName": attrs.get("name", pid),
        "gender": attrs.get("gender", ""),
        "birthDate": attrs.get("birth"),
        "relationships": {
            "parents": list(attrs.get("parents", [])),
            "children": list(attrs.get("children", [])),
            "partners": list(attrs.get("partners", [])),
        },
        "splitLinks": [
            {"type": t, "linkedPersonId": linked, "ghostContext": context}
            for t, linked, context in attrs.get("splits", [])
        ],
    }


@pytest.fixture
def build_tree():
    """Build a FamilyTree from {id: {gender, birth, parents, children, partners, splits}}.

    Only one side of each relationship needs to be given; the layout pass
    repairs the other side.
    """

    def _build(people):
        return FamilyTree.FromRecords([_record(pid, attrs) for pid, attrs in people.items()])

    return _build


@pytest.fixture
def config():
    return LayoutConfig()


@pytest.fixture
def overlapping_pairs():
    """Pairs of people in the same row whose gap-padded boxes intersect."""

    def _pairs(positions, config):
        items = list(positions.items())
        found = []
        for i, (a, (ax, ay)) in enumerate(items):
            for b, (bx, by) in items[i + 1:]:
                if abs(ay - by) >= config.node_height:
                    continue
                pad = config.node_width + config.horizontal_gap
                if ax < bx + pad and bx < ax + pad:
                    found.append((a, b))
        return found

    return _pairs
