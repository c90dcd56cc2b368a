from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol

from ..index.tfidf import ScoredPath, TfIdfIndex
from ..ingest.markdown import Note, normalize_tag, parse_note
from . import query
from .model import GraphExport, GraphNode, GraphStats, HubNote
from .resolve import Resolver


logger = logging.getLogger(__name__)


class NoteSource(Protocol):
    extension: str

    def list_notes(self) -> list[str]: ...

    def read_note(self, path: str) -> Note: ...


class GraphEngine:
    """In-memory link graph over a set of notes, with a TF-IDF index alongside.

    Nodes live in a flat ``path -> GraphNode`` table. Outlinks are kept as
    written and resolved on demand; inlinks hold canonical paths and are kept
    in step by ``build``, ``update_node`` and ``remove_node``.

    Mutations are not thread-safe. Callers must serialise them; reads between
    mutations see a consistent snapshot.
    """

    def __init__(self, store: Optional[NoteSource] = None, *, extension: Optional[str] = None):
        self.store = store
        if extension is None:
            extension = getattr(store, "extension", ".md")
        self.extension = extension
        self.search_index = TfIdfIndex()
        self._nodes: dict[str, GraphNode] = {}
        self._resolver = Resolver(extension=extension)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, path: object) -> bool:
        return path in self._nodes

    # -- mutation ---------------------------------------------------------

    def build(self, documents: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
        """Rebuild everything from ``documents`` (path -> text) or the store."""
        notes = self._load_all(documents)

        self._nodes.clear()
        self._resolver.clear()
        for note in notes:
            self._insert(note)

        edges = 0
        dangling = 0
        for path, node in self._nodes.items():
            for ref in node.outlinks:
                target = self._resolver.resolve(ref)
                if target is None:
                    dangling += 1
                    continue
                self._nodes[target].inlinks.append(path)
                edges += 1

        self.search_index.build_index((n.path, n.content) for n in notes)

        logger.info("Built graph: %d notes, %d edges, %d dangling links", len(self._nodes), edges, dangling)
        return {"notes": len(self._nodes), "edges": edges, "dangling_links": dangling}

    def update_node(self, path: str, text: Optional[str] = None) -> GraphNode:
        """Insert or refresh one note, leaving the edges a full rebuild would.

        The note is fetched before anything is touched, so a failed read
        leaves the graph and index unchanged.
        """
        note = self._fetch(path, text)
        path = note.path

        before = self._outlink_targets(exclude=path)
        old = self._nodes.get(path)
        if old is not None:
            self._drop_contribution(old)

        node = self._insert(note)
        after = self._outlink_targets(exclude=path)
        self._shift_inlinks(before, after, changed=path)

        for src, targets in after.items():
            node.inlinks.extend(src for t in targets if t == path)
        for target in self._targets(node):
            self._nodes[target].inlinks.append(path)

        self.search_index.update_document(path, note.content)
        logger.debug("Updated node %s (%d outlinks, %d inlinks)", path, len(node.outlinks), len(node.inlinks))
        return node

    def remove_node(self, path: str) -> bool:
        """Drop a note and the inlinks it contributed. Unknown paths are ignored.

        Other notes keep their outlinks; ones that pointed here now dangle,
        or resolve to another note if one matches.
        """
        node = self._nodes.get(path)
        if node is None:
            return False

        before = self._outlink_targets(exclude=path)
        self._drop_contribution(node)
        del self._nodes[path]
        self._resolver.discard(path)
        after = self._outlink_targets(exclude=path)
        self._shift_inlinks(before, after, changed=path)

        self.search_index.remove_document(path)
        logger.debug("Removed node %s", path)
        return True

    # -- lookups ----------------------------------------------------------

    def resolve_node(self, reference: str) -> Optional[GraphNode]:
        target = self._resolver.resolve(reference)
        return self._nodes[target] if target is not None else None

    def get_node(self, reference: str) -> Optional[GraphNode]:
        return self.resolve_node(reference)

    def get_all_nodes(self) -> list[GraphNode]:
        return list(self._nodes.values())

    def get_backlinks(self, reference: str) -> list[str]:
        node = self.resolve_node(reference)
        return list(node.inlinks) if node is not None else []

    def find_nodes_by_tag(self, tag: str) -> list[GraphNode]:
        wanted = normalize_tag(tag)
        return [n for n in self._nodes.values() if wanted in n.tags]

    def find_orphaned_nodes(self) -> list[GraphNode]:
        return [n for n in self._nodes.values() if not n.inlinks and not n.outlinks]

    # -- traversal and structure ------------------------------------------

    def adjacency(self) -> query.Adjacency:
        return query.undirected_adjacency(self._nodes, self._resolver.resolve)

    def get_connected_nodes(self, reference: str, depth: int = 1) -> list[GraphNode]:
        start = self.resolve_node(reference)
        if start is None:
            return []
        return [self._nodes[p] for p in query.connected_nodes(self.adjacency(), start.path, depth=depth)]

    def find_shortest_path(self, source: str, target: str) -> Optional[list[str]]:
        src = self.resolve_node(source)
        dst = self.resolve_node(target)
        if src is None or dst is None:
            return None
        if src.path == dst.path:
            return [src.path]
        return query.shortest_path(self.adjacency(), src.path, dst.path)

    def get_hub_notes(self, limit: int = 10) -> list[HubNote]:
        return query.hub_nodes(self._nodes, limit=limit)

    def get_clusters(self, min_size: int = 2) -> list[list[GraphNode]]:
        return [
            [self._nodes[p] for p in comp]
            for comp in query.components(self.adjacency())
            if len(comp) >= int(min_size)
        ]

    def find_bridge_notes(self) -> list[GraphNode]:
        return [self._nodes[p] for p in query.articulation_points(self.adjacency())]

    def get_stats(self) -> GraphStats:
        total_nodes = len(self._nodes)
        total_edges = len(query.resolved_edges(self._nodes, self._resolver.resolve))
        max_edges = total_nodes * (total_nodes - 1)
        return GraphStats(
            total_nodes=total_nodes,
            total_edges=total_edges,
            orphaned_nodes=len(self.find_orphaned_nodes()),
            average_connections=(
                sum(n.degree for n in self._nodes.values()) / total_nodes if total_nodes else 0.0
            ),
            density=total_edges / max_edges if max_edges > 0 else 0.0,
            components=query.count_components(self.adjacency()),
        )

    def export_graph(self) -> GraphExport:
        return GraphExport(
            nodes=self.get_all_nodes(),
            edges=query.resolved_edges(self._nodes, self._resolver.resolve),
        )

    # -- text similarity --------------------------------------------------

    def semantic_search(self, query_text: str, limit: int = 10) -> list[ScoredPath]:
        return self.search_index.search(query_text, limit)

    def find_similar(self, reference: str, limit: int = 10) -> list[ScoredPath]:
        node = self.resolve_node(reference)
        if node is None:
            return []
        return self.search_index.find_similar(node.path, limit)

    # -- internals --------------------------------------------------------

    def _load_all(self, documents: Optional[Mapping[str, str]]) -> list[Note]:
        if documents is not None:
            return [parse_note(text, path, extension=self.extension) for path, text in documents.items()]
        if self.store is None:
            raise ValueError("build() needs either documents or a note store")
        return [self.store.read_note(p) for p in self.store.list_notes()]

    def _fetch(self, path: str, text: Optional[str]) -> Note:
        if text is not None:
            return parse_note(text, path, extension=self.extension)
        if self.store is None:
            raise ValueError(f"No text given for {path} and no note store configured")
        return self.store.read_note(path)

    def _insert(self, note: Note) -> GraphNode:
        node = GraphNode(
            path=note.path,
            title=note.title,
            tags=list(note.tags),
            outlinks=note.link_targets,
            inlinks=[],
        )
        # Re-assigning an existing key keeps its position in the table.
        self._nodes[note.path] = node
        self._resolver.add(note.path, note.title)
        return node

    def _targets(self, node: GraphNode) -> list[str]:
        out: list[str] = []
        for ref in node.outlinks:
            target = self._resolver.resolve(ref)
            if target is not None:
                out.append(target)
        return out

    def _outlink_targets(self, *, exclude: str) -> dict[str, list[str]]:
        return {p: self._targets(n) for p, n in self._nodes.items() if p != exclude}

    def _drop_contribution(self, node: GraphNode) -> None:
        for target in set(self._targets(node)):
            tnode = self._nodes.get(target)
            if tnode is not None:
                tnode.inlinks = [p for p in tnode.inlinks if p != node.path]

    def _shift_inlinks(
        self,
        before: dict[str, list[str]],
        after: dict[str, list[str]],
        *,
        changed: str,
    ) -> None:
        # Adding, retitling or removing a note can change what other notes'
        # links resolve to. Edges into ``changed`` itself are handled by the
        # caller.
        for src, new_targets in after.items():
            old_targets = before.get(src, [])
            if old_targets == new_targets:
                continue
            for t in old_targets:
                tnode = self._nodes.get(t)
                if t != changed and tnode is not None and src in tnode.inlinks:
                    tnode.inlinks.remove(src)
            for t in new_targets:
                if t != changed:
                    self._nodes[t].inlinks.append(src)
