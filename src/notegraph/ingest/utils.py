from __future__ import annotations

import hashlib
from pathlib import Path


def relpath(path: Path, root: Path) -> str:
    # Vault ids are always POSIX-style, regardless of platform.
    return path.relative_to(root).as_posix()


def sha256_file(path: Path, *, chunk_size: int = 1 << 16) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        while True:
            block = f.read(chunk_size)
            if not block:
                break
            h.update(block)
    return h.hexdigest()
