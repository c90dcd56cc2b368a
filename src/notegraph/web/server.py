from __future__ import annotations

import threading
from typing import Any

from ..config import Settings
from ..graph.build import GraphEngine
from ..ingest.vault import NoteNotFoundError, Vault, VaultError


def create_app(*, vault_path: str | None = None, engine: GraphEngine | None = None):
    # Lazy import so the core CLI works without web deps.
    from fastapi import Body, FastAPI
    from fastapi.responses import JSONResponse

    settings = Settings()
    if engine is None:
        vault = Vault(
            vault_path or settings.vault_path,
            extension=settings.note_extension,
            cache_enabled=settings.cache_enabled,
        )
        engine = GraphEngine(vault)
        engine.build()
    elif not isinstance(engine.store, Vault):
        raise ValueError("engine must be backed by a Vault")
    vault = engine.store

    # The engine does no locking of its own; requests run on a thread pool.
    lock = threading.Lock()

    app = FastAPI(title="notegraph", version="0.1.0")

    def _error(msg: str, status_code: int) -> JSONResponse:
        return JSONResponse({"ok": False, "error": msg}, status_code=status_code)

    def _not_found(ref: str) -> JSONResponse:
        return _error(f"No note matches '{ref}'", 404)

    @app.get("/api/health")
    def health():
        with lock:
            return {"ok": True, "vault": str(vault.root), "notes": len(engine)}

    @app.get("/api/notes")
    def notes():
        with lock:
            return {"ok": True, "notes": [n.path for n in engine.get_all_nodes()]}

    @app.get("/api/note")
    def note(path: str):
        with lock:
            node = engine.get_node(path)
            if node is None:
                return _not_found(path)
            try:
                parsed = vault.read_note(node.path)
            except NoteNotFoundError as e:
                return _error(str(e), 404)
        return {
            "ok": True,
            "note": {
                **node.to_dict(),
                "content": parsed.content,
                "frontmatter": parsed.frontmatter,
                "headings": [{"level": h.level, "text": h.text, "line": h.line} for h in parsed.headings],
            },
        }

    @app.put("/api/note")
    def put_note(payload: dict[str, Any] = Body(...)):
        path = str(payload.get("path") or "").strip()
        content = payload.get("content")
        if not path or not isinstance(content, str):
            return _error("path and content are required", 400)

        with lock:
            try:
                created = not vault.note_exists(path)
                written = vault.create_note(path, content)
                node = engine.update_node(written.path)
            except VaultError as e:
                return _error(str(e), 400)
        return {"ok": True, "created": created, "node": node.to_dict()}

    @app.delete("/api/note")
    def delete_note(path: str):
        with lock:
            try:
                normalized = vault.normalize_path(path)
                if not vault.note_exists(normalized):
                    # Deleted outside the app; drop the stale node anyway.
                    engine.remove_node(normalized)
                    return _not_found(path)
                vault.delete_note(normalized)
            except VaultError as e:
                return _error(str(e), 400)
            engine.remove_node(normalized)
        return {"ok": True, "deleted": normalized}

    @app.get("/api/backlinks")
    def backlinks(path: str):
        with lock:
            if engine.get_node(path) is None:
                return _not_found(path)
            return {"ok": True, "backlinks": engine.get_backlinks(path)}

    @app.get("/api/graph")
    def graph(path: str | None = None, depth: int = 1):
        with lock:
            if path:
                if engine.get_node(path) is None:
                    return _not_found(path)
                nodes = engine.get_connected_nodes(path, depth=int(depth))
                return {"ok": True, "nodes": [n.to_dict() for n in nodes]}
            return {"ok": True, **engine.export_graph().to_dict()}

    @app.get("/api/tags/{tag}")
    def by_tag(tag: str):
        with lock:
            return {"ok": True, "notes": [n.path for n in engine.find_nodes_by_tag(tag)]}

    @app.get("/api/stats")
    def stats():
        with lock:
            return {"ok": True, "stats": engine.get_stats().to_dict()}

    @app.get("/api/search")
    def search(q: str, limit: int = 10):
        if not q.strip():
            return _error("q is required", 400)
        with lock:
            hits = engine.semantic_search(q, int(limit))
        return {"ok": True, "hits": [h.to_dict() for h in hits]}

    @app.get("/api/similar")
    def similar(path: str, limit: int = 10):
        with lock:
            if engine.get_node(path) is None:
                return _not_found(path)
            hits = engine.find_similar(path, int(limit))
        return {"ok": True, "hits": [h.to_dict() for h in hits]}

    @app.get("/api/path")
    def shortest_path(source: str, target: str):
        with lock:
            for ref in (source, target):
                if engine.get_node(ref) is None:
                    return _not_found(ref)
            return {"ok": True, "path": engine.find_shortest_path(source, target)}

    @app.get("/api/hubs")
    def hubs(limit: int = 10):
        with lock:
            return {"ok": True, "hubs": [h.to_dict() for h in engine.get_hub_notes(limit=int(limit))]}

    @app.get("/api/clusters")
    def clusters(min_size: int = 2):
        with lock:
            found = engine.get_clusters(min_size=int(min_size))
        return {"ok": True, "clusters": [[n.path for n in members] for members in found]}

    @app.get("/api/bridges")
    def bridges():
        with lock:
            return {"ok": True, "bridges": [n.path for n in engine.find_bridge_notes()]}

    @app.post("/api/rebuild")
    def rebuild():
        with lock:
            vault.clear_cache()
            try:
                res = engine.build()
            except VaultError as e:
                return _error(str(e), 400)
        return {"ok": True, **res}

    return app
