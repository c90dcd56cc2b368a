from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class GraphNode:
    path: str
    title: str
    tags: list[str] = field(default_factory=list)
    # Link targets exactly as written in the note; resolved on every read.
    outlinks: list[str] = field(default_factory=list)
    # Canonical paths of notes whose links resolve here, one per edge.
    inlinks: list[str] = field(default_factory=list)

    @property
    def degree(self) -> int:
        return len(self.inlinks) + len(self.outlinks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "title": self.title,
            "tags": list(self.tags),
            "outlinks": list(self.outlinks),
            "inlinks": list(self.inlinks),
        }


@dataclass(frozen=True)
class HubNote:
    node: GraphNode
    degree: int

    def to_dict(self) -> dict[str, Any]:
        return {"node": self.node.to_dict(), "degree": self.degree}


@dataclass(frozen=True)
class GraphStats:
    total_nodes: int
    total_edges: int
    orphaned_nodes: int
    average_connections: float
    density: float
    components: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_nodes": self.total_nodes,
            "total_edges": self.total_edges,
            "orphaned_nodes": self.orphaned_nodes,
            "average_connections": self.average_connections,
            "density": self.density,
            "components": self.components,
        }


@dataclass(frozen=True)
class GraphExport:
    nodes: list[GraphNode]
    edges: list[tuple[str, str]]

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [{"source": s, "target": t} for s, t in self.edges],
        }
