from __future__ import annotations

from collections import deque
from typing import Callable, Mapping, Optional

from .model import GraphNode, HubNote


Adjacency = dict[str, list[str]]
ResolveFn = Callable[[str], Optional[str]]


def undirected_adjacency(nodes: Mapping[str, GraphNode], resolve: ResolveFn) -> Adjacency:
    """Neighbour lists over resolved outlinks plus inlinks, ignoring direction.

    Each list holds a neighbour once, outlink targets first, in node-table
    order. Self-links are dropped since they never change reachability.
    """
    adj: Adjacency = {}
    for path, node in nodes.items():
        seen: set[str] = {path}
        out: list[str] = []
        for ref in node.outlinks:
            target = resolve(ref)
            if target is not None and target not in seen:
                seen.add(target)
                out.append(target)
        for src in node.inlinks:
            if src in nodes and src not in seen:
                seen.add(src)
                out.append(src)
        adj[path] = out
    return adj


def resolved_edges(nodes: Mapping[str, GraphNode], resolve: ResolveFn) -> list[tuple[str, str]]:
    edges: list[tuple[str, str]] = []
    for path, node in nodes.items():
        for ref in node.outlinks:
            target = resolve(ref)
            if target is not None:
                edges.append((path, target))
    return edges


def connected_nodes(adj: Adjacency, start: str, *, depth: int = 1) -> list[str]:
    """Paths first reached at distance 1..depth from ``start``, nearest first."""
    if start not in adj:
        return []

    visited = {start}
    out: list[str] = []
    frontier = [start]
    for _ in range(int(depth)):
        nxt: list[str] = []
        for path in frontier:
            for neighbor in adj[path]:
                if neighbor in visited:
                    continue
                visited.add(neighbor)
                nxt.append(neighbor)
        if not nxt:
            break
        out.extend(nxt)
        frontier = nxt
    return out


def shortest_path(adj: Adjacency, source: str, target: str) -> Optional[list[str]]:
    if source not in adj or target not in adj:
        return None
    if source == target:
        return [source]

    parents: dict[str, str] = {}
    visited = {source}
    queue = deque([source])
    while queue:
        current = queue.popleft()
        for neighbor in adj[current]:
            if neighbor in visited:
                continue
            parents[neighbor] = current
            if neighbor == target:
                path = [target]
                while path[-1] != source:
                    path.append(parents[path[-1]])
                path.reverse()
                return path
            visited.add(neighbor)
            queue.append(neighbor)
    return None


def components(adj: Adjacency, *, exclude: Optional[str] = None) -> list[list[str]]:
    """Connected components via BFS, in node-table order."""
    visited: set[str] = set()
    if exclude is not None:
        visited.add(exclude)

    out: list[list[str]] = []
    for start in adj:
        if start in visited:
            continue
        visited.add(start)
        component: list[str] = []
        queue = deque([start])
        while queue:
            current = queue.popleft()
            component.append(current)
            for neighbor in adj[current]:
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)
        out.append(component)
    return out


def count_components(adj: Adjacency, *, exclude: Optional[str] = None) -> int:
    return len(components(adj, exclude=exclude))


def articulation_points(adj: Adjacency) -> list[str]:
    """Nodes whose removal splits their component (iterative Tarjan).

    Gives the same answer as removing each node in turn and recounting
    components, in O(N + E) instead of O(N * (N + E)). Isolated nodes are
    never reported.
    """
    disc: dict[str, int] = {}
    low: dict[str, int] = {}
    cut: set[str] = set()
    timer = 0

    for root in adj:
        if root in disc:
            continue
        disc[root] = low[root] = timer
        timer += 1
        root_children = 0
        stack = [(root, None, iter(adj[root]))]

        while stack:
            v, parent, neighbors = stack[-1]
            descended = False
            for w in neighbors:
                if w == parent:
                    continue
                if w in disc:
                    low[v] = min(low[v], disc[w])
                    continue
                disc[w] = low[w] = timer
                timer += 1
                stack.append((w, v, iter(adj[w])))
                descended = True
                break
            if descended:
                continue

            stack.pop()
            if parent is None:
                continue
            low[parent] = min(low[parent], low[v])
            if parent == root:
                root_children += 1
            elif low[v] >= disc[parent]:
                cut.add(parent)

        if root_children > 1:
            cut.add(root)

    return [p for p in adj if p in cut]


def hub_nodes(nodes: Mapping[str, GraphNode], *, limit: int = 10) -> list[HubNote]:
    # sorted() is stable, so equal degrees keep node-table order.
    ranked = sorted(nodes.values(), key=lambda n: n.degree, reverse=True)
    return [HubNote(node=n, degree=n.degree) for n in ranked[: max(0, int(limit))]]
