"""Note link graph.

Notes become nodes keyed by their vault path; ``[[wikilinks]]`` and relative
markdown links become directed edges once they resolve to a known note.
Everything is held in memory and rebuilt from the vault on startup.
"""

from .build import GraphEngine
from .model import GraphExport, GraphNode, GraphStats, HubNote
from .resolve import Resolver

__all__ = ["GraphEngine", "GraphExport", "GraphNode", "GraphStats", "HubNote", "Resolver"]
