"""Local-first knowledge graph and lexical search over a markdown vault."""

__version__ = "0.1.0"
