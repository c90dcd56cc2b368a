"""Link-target resolution.

A reference is matched against the known notes with these strategies, first
hit wins:

1. exact path (``Projects/Alpha.md``)
2. path plus the note extension (``Projects/Alpha``)
3. base name, case-insensitive (``alpha``)
4. title, case-insensitive (``Project Alpha``)

Steps 3 and 4 can match several notes; the smallest path wins. The choice
depends only on which notes exist, so an incremental update resolves links
exactly as a rebuild of the same notes would. Both steps are served from
lookup tables so resolution does not scan the graph.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Callable, Optional


def base_name(path: str, extension: str = ".md") -> str:
    if extension and path.endswith(extension):
        path = path[: -len(extension)]
    return path.rsplit("/", 1)[-1]


class Resolver:
    def __init__(self, *, extension: str = ".md"):
        self.extension = extension
        self._titles: dict[str, str] = {}
        self._by_base: dict[str, set[str]] = defaultdict(set)
        self._by_title: dict[str, set[str]] = defaultdict(set)

    def __contains__(self, path: object) -> bool:
        return path in self._titles

    def add(self, path: str, title: str) -> None:
        """Register a note, or refresh its title if already known."""
        if path in self._titles:
            _discard(self._by_title, self._titles[path].lower(), path)
        else:
            self._by_base[base_name(path, self.extension).lower()].add(path)
        self._titles[path] = title
        self._by_title[title.lower()].add(path)

    def discard(self, path: str) -> None:
        if path not in self._titles:
            return
        _discard(self._by_base, base_name(path, self.extension).lower(), path)
        _discard(self._by_title, self._titles.pop(path).lower(), path)

    def clear(self) -> None:
        self._titles.clear()
        self._by_base.clear()
        self._by_title.clear()

    def resolve(self, reference: str) -> Optional[str]:
        for strategy in STRATEGIES:
            hit = strategy(self, reference)
            if hit is not None:
                return hit
        return None


def exact_path(resolver: Resolver, reference: str) -> Optional[str]:
    return reference if reference in resolver else None


def with_extension(resolver: Resolver, reference: str) -> Optional[str]:
    if not resolver.extension or reference.endswith(resolver.extension):
        return None
    candidate = f"{reference}{resolver.extension}"
    return candidate if candidate in resolver else None


def by_base_name(resolver: Resolver, reference: str) -> Optional[str]:
    return _first(resolver._by_base.get(reference.lower()))


def by_title(resolver: Resolver, reference: str) -> Optional[str]:
    return _first(resolver._by_title.get(reference.lower()))


STRATEGIES: tuple[Callable[[Resolver, str], Optional[str]], ...] = (
    exact_path,
    with_extension,
    by_base_name,
    by_title,
)


def _first(candidates: set[str] | None) -> Optional[str]:
    return min(candidates) if candidates else None


def _discard(table: dict[str, set[str]], key: str, path: str) -> None:
    bucket = table.get(key)
    if bucket is None:
        return
    bucket.discard(path)
    if not bucket:
        del table[key]
