"""
Articulation engine: cut vertices of the undirected projection via
depth-first discovery order and low-link values.
"""

from __future__ import annotations

from collections.abc import Iterator

from identigraph.graph.snapshot import GraphSnapshot, Incidence

# (node, edge_id used to enter node, remaining incident edges)
_Frame = tuple[str, "str | None", Iterator[Incidence]]


def run_articulation_points(graph: GraphSnapshot) -> set[str]:
    """
    Return the set of nodes whose removal increases the number of connected
    components.

    Iterative DFS from every unvisited node (sorted order), so disconnected
    components are each analyzed on their own. The edge used to enter a node
    is skipped by edge id, not by parent node, so a parallel edge back to the
    parent counts as a back edge. Isolated nodes are never cut vertices.
    O(V + E).
    """
    discovery: dict[str, int] = {}
    low: dict[str, int] = {}
    points: set[str] = set()
    counter = 0

    for root in graph.node_ids():
        if root in discovery:
            continue
        discovery[root] = low[root] = counter
        counter += 1
        root_children = 0
        stack: list[_Frame] = [(root, None, iter(graph.edges_of(root)))]

        while stack:
            node, via_edge, edges = stack[-1]
            descended = False
            for nbr, edge_id, _ in edges:
                if edge_id == via_edge:
                    continue
                if nbr in discovery:
                    # back edge (or already-finished descendant, which cannot lower low)
                    low[node] = min(low[node], discovery[nbr])
                    continue
                discovery[nbr] = low[nbr] = counter
                counter += 1
                if node == root:
                    root_children += 1
                stack.append((nbr, edge_id, iter(graph.edges_of(nbr))))
                descended = True
                break
            if descended:
                continue

            stack.pop()
            if stack:
                parent = stack[-1][0]
                low[parent] = min(low[parent], low[node])
                if parent != root and low[node] >= discovery[parent]:
                    points.add(parent)

        if root_children > 1:
            points.add(root)

    return points
