from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from .markdown import Note, parse_note
from .utils import relpath, sha256_file


logger = logging.getLogger(__name__)


class VaultError(RuntimeError):
    pass


class NoteNotFoundError(VaultError):
    pass


class Vault:
    """Filesystem-backed note store.

    Notes are addressed by their path relative to the vault root, always with
    forward slashes and the note extension (``Projects/Alpha.md``).
    """

    def __init__(self, root: str | os.PathLike[str], *, extension: str = ".md", cache_enabled: bool = True):
        self.root = Path(root).expanduser().resolve()
        self.extension = extension
        self.cache_enabled = bool(cache_enabled)
        self._cache: dict[str, Note] = {}

    def list_notes(self) -> list[str]:
        if not self.root.is_dir():
            raise VaultError(f"Vault directory not found: {self.root}")
        return sorted(relpath(p, self.root) for p in iter_note_files(self.root, self.extension))

    def read_text(self, path: str) -> str:
        normalized = self.normalize_path(path)
        fp = self.root / normalized
        if not fp.is_file():
            raise NoteNotFoundError(f"Note not found: {normalized}")
        return fp.read_text(encoding="utf-8", errors="replace")

    def read_note(self, path: str) -> Note:
        normalized = self.normalize_path(path)
        if self.cache_enabled and normalized in self._cache:
            return self._cache[normalized]

        note = parse_note(self.read_text(normalized), normalized, extension=self.extension)
        if self.cache_enabled:
            self._cache[normalized] = note
        return note

    def documents(self) -> dict[str, str]:
        return {p: self.read_text(p) for p in self.list_notes()}

    def create_note(self, path: str, content: str) -> Note:
        normalized = self.normalize_path(path)
        fp = self.root / normalized
        fp.parent.mkdir(parents=True, exist_ok=True)
        fp.write_text(content, encoding="utf-8")
        self._cache.pop(normalized, None)
        logger.debug("Wrote note %s", normalized)
        return self.read_note(normalized)

    def update_note(self, path: str, content: str) -> Note:
        normalized = self.normalize_path(path)
        if not self.note_exists(normalized):
            raise NoteNotFoundError(f"Note not found: {normalized}")
        return self.create_note(normalized, content)

    def delete_note(self, path: str) -> None:
        normalized = self.normalize_path(path)
        fp = self.root / normalized
        # Deleting an already-missing note is not an error.
        fp.unlink(missing_ok=True)
        self._cache.pop(normalized, None)
        logger.debug("Deleted note %s", normalized)

    def note_exists(self, path: str) -> bool:
        return (self.root / self.normalize_path(path)).is_file()

    def fingerprint(self, path: str) -> str:
        normalized = self.normalize_path(path)
        fp = self.root / normalized
        if not fp.is_file():
            raise NoteNotFoundError(f"Note not found: {normalized}")
        return sha256_file(fp)

    def clear_cache(self) -> None:
        self._cache.clear()

    def normalize_path(self, path: str) -> str:
        clean = path.replace("\\", "/").lstrip("/")
        if not clean:
            raise VaultError("Empty note path")
        if self.extension and not clean.endswith(self.extension):
            clean = f"{clean}{self.extension}"

        resolved = (self.root / clean).resolve()
        try:
            resolved.relative_to(self.root)
        except ValueError:
            raise VaultError(f"Note path escapes the vault: {path}") from None
        return resolved.relative_to(self.root).as_posix()


def iter_note_files(root: Path, extension: str = ".md") -> Iterable[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        # Skip hidden directories such as .obsidian and .git in place.
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        for name in filenames:
            if name.startswith("."):
                continue
            if extension and not name.endswith(extension):
                continue
            yield Path(dirpath) / name
