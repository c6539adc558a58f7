"""Default ids and positions for generated graphs.

Columns follow edge depth: roots sit at x=100 and every step downstream moves
400 to the right. Nodes sharing a column are parallel branches and stack 150
apart starting at y=200. A graph without edges is laid out as a single row in
node order. Nodes that already carry a position are never moved.
"""
import random
import string
from typing import Dict, Optional, Set

from flowsmith.graph.handles import edge_id
from flowsmith.graph.topology import FlowTopology
from flowsmith.schemas.flow import FlowGraph, Position

ORIGIN_X = 100
ORIGIN_Y = 200
COLUMN_SPACING = 400
BRANCH_SPACING = 150

SUFFIX_LENGTH = 6
SUFFIX_ALPHABET = string.ascii_letters + string.digits


def random_suffix(rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return "".join(rng.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))


def generate_node_id(component_type: str, taken: Set[str], rng: Optional[random.Random] = None) -> str:
    """``{ComponentType}-{6 alphanumerics}``, redrawn until it is not in ``taken``."""
    while True:
        candidate = f"{component_type}-{random_suffix(rng)}"
        if candidate not in taken:
            taken.add(candidate)
            return candidate


def compute_positions(topology: FlowTopology) -> Dict[str, Position]:
    if not topology.is_connected():
        return {
            n_id: Position(x=ORIGIN_X + COLUMN_SPACING * i, y=ORIGIN_Y)
            for i, n_id in enumerate(topology.order)
        }

    depths = topology.get_depths()
    slots: Dict[int, int] = {}
    positions: Dict[str, Position] = {}
    for n_id in topology.order:
        column = depths[n_id]
        branch = slots.get(column, 0)
        slots[column] = branch + 1
        positions[n_id] = Position(
            x=ORIGIN_X + COLUMN_SPACING * column,
            y=ORIGIN_Y + BRANCH_SPACING * branch,
        )
    return positions


def apply_defaults(graph: FlowGraph, rng: Optional[random.Random] = None) -> FlowGraph:
    """Fill missing node ids, edge ids and node positions in place."""
    taken = set(graph.node_ids())
    for node in graph.nodes:
        if not node.id:
            node.id = generate_node_id(node.component_type, taken, rng)
        if not node.data.id:
            node.data.id = node.id

    for edge in graph.edges:
        if not edge.id:
            edge.id = edge_id(edge.source, edge.sourceHandle, edge.target, edge.targetHandle)

    if any(node.position is None for node in graph.nodes):
        positions = compute_positions(FlowTopology(graph.nodes, graph.edges))
        for node in graph.nodes:
            if node.position is None:
                node.position = positions[node.id]
    return graph
