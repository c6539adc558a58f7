from typing import List, Dict
from collections import deque
from flowsmith.schemas.flow import FlowEdge, FlowNode

class FlowTopology:
    """Adjacency view over a flow graph, used to derive layout columns."""

    def __init__(self, nodes: List[FlowNode], edges: List[FlowEdge]):
        self.order = [n.id for n in nodes if n.id]
        self.adj: Dict[str, List[str]] = {n_id: [] for n_id in self.order}
        self.rev_adj: Dict[str, List[str]] = {n_id: [] for n_id in self.order}

        for edge in edges:
            u, v = edge.source, edge.target
            if u in self.adj and v in self.adj and v not in self.adj[u]:
                self.adj[u].append(v)
                self.rev_adj[v].append(u)

    def get_topo_sort(self) -> List[str]:
        """
        Get topological sort of node IDs (Kahn). Nodes on a cycle are left out.
        """
        in_degree = {n_id: len(parents) for n_id, parents in self.rev_adj.items()}
        queue = deque([n_id for n_id in self.order if in_degree[n_id] == 0])
        result = []

        while queue:
            curr = queue.popleft()
            result.append(curr)
            for neighbor in self.adj[curr]:
                in_degree[neighbor] -= 1
                if in_degree[neighbor] == 0:
                    queue.append(neighbor)

        return result

    def get_depths(self) -> Dict[str, int]:
        """
        Longest-path depth from any root. Nodes the sort could not place
        (cycles) share one column after the deepest placed node.
        """
        depths: Dict[str, int] = {}
        for n_id in self.get_topo_sort():
            parents = [depths[p] for p in self.rev_adj[n_id] if p in depths]
            depths[n_id] = max(parents) + 1 if parents else 0

        leftover = [n_id for n_id in self.order if n_id not in depths]
        if leftover:
            column = max(depths.values(), default=-1) + 1
            for n_id in leftover:
                depths[n_id] = column
        return depths

    def is_connected(self) -> bool:
        return any(self.adj.values())
