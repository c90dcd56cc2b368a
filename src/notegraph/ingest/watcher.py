"""Polling change detection for a vault.

Each poll lists the vault and fingerprints every note, compares the result
with the previous snapshot, and reports added, deleted and modified paths.
Polling is used instead of filesystem events so the same loop works for
network shares and synced folders.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

from .vault import NoteNotFoundError, Vault, VaultError

if TYPE_CHECKING:
    from ..graph.build import GraphEngine


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VaultChanges:
    added: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.added or self.deleted or self.modified)


class VaultWatcher:
    def __init__(
        self,
        vault: Vault,
        *,
        on_changes: Callable[[VaultChanges], None],
        poll_interval_s: float = 5.0,
    ):
        self.vault = vault
        self.on_changes = on_changes
        self.poll_interval_s = float(poll_interval_s)
        self._known: dict[str, str] = {}

    @property
    def known_paths(self) -> set[str]:
        return set(self._known)

    def start(self) -> None:
        """Take the baseline snapshot that later polls are compared against."""
        self._known = self._snapshot()
        logger.debug("Watching %d notes under %s", len(self._known), self.vault.root)

    def poll(self) -> Optional[VaultChanges]:
        self.vault.clear_cache()
        current = self._snapshot()

        changes = VaultChanges(
            added=[p for p in current if p not in self._known],
            deleted=[p for p in self._known if p not in current],
            modified=[p for p, digest in current.items() if p in self._known and self._known[p] != digest],
        )
        self._known = current

        if not changes:
            return None
        logger.info(
            "Vault changed: %d added, %d deleted, %d modified",
            len(changes.added),
            len(changes.deleted),
            len(changes.modified),
        )
        self.on_changes(changes)
        return changes

    def run(self, stop: threading.Event) -> None:
        """Poll until ``stop`` is set. Failed cycles are logged and retried."""
        while not stop.is_set():
            try:
                self.poll()
            except (VaultError, OSError):
                logger.exception("Polling %s failed", self.vault.root)
            stop.wait(self.poll_interval_s)

    def _snapshot(self) -> dict[str, str]:
        out: dict[str, str] = {}
        for path in self.vault.list_notes():
            try:
                out[path] = self.vault.fingerprint(path)
            except NoteNotFoundError:
                # Deleted between listing and hashing; the next poll sees it.
                continue
        return out


def apply_changes(engine: GraphEngine, changes: VaultChanges) -> None:
    for path in changes.deleted:
        engine.remove_node(path)
    for path in [*changes.added, *changes.modified]:
        try:
            engine.update_node(path)
        except NoteNotFoundError:
            logger.warning("Note %s disappeared before it could be read", path)
            engine.remove_node(path)
