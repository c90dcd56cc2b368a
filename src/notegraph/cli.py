from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .config import Settings
from .graph.build import GraphEngine
from .index.tfidf import ScoredPath
from .ingest.vault import Vault, VaultError
from .ingest.watcher import VaultChanges, VaultWatcher, apply_changes


app = typer.Typer(add_completion=False, help="notegraph: link graph and search over a markdown vault.")
console = Console()

VaultOption = typer.Option(None, "--vault", help="Vault directory (default: $NOTEGRAPH_VAULT_PATH)")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Explore links, clusters and similar notes in a markdown vault."""
    settings = Settings()
    if not logging.root.handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.WARNING),
            format="%(levelname)s  %(name)s  %(message)s",
        )


def _open_engine(vault_path: Path | None) -> tuple[Vault, GraphEngine]:
    settings = Settings()
    vault = Vault(
        vault_path or settings.vault_path,
        extension=settings.note_extension,
        cache_enabled=settings.cache_enabled,
    )
    engine = GraphEngine(vault)
    try:
        engine.build()
    except VaultError as e:
        console.print(str(e), style="red", markup=False)
        raise typer.Exit(code=1)
    return vault, engine


def _missing(note: str) -> None:
    console.print(f"No note matches '{note}'.", style="yellow", markup=False)
    raise typer.Exit(code=2)


@app.command()
def stats(vault: Path | None = VaultOption):
    """Show graph statistics."""
    _, engine = _open_engine(vault)
    s = engine.get_stats()

    table = Table(title="Vault Graph")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Notes", str(s.total_nodes))
    table.add_row("Links", str(s.total_edges))
    table.add_row("Orphans", str(s.orphaned_nodes))
    table.add_row("Avg connections", f"{s.average_connections:.2f}")
    table.add_row("Density", f"{s.density:.4f}")
    table.add_row("Components", str(s.components))
    console.print(table)


@app.command()
def notes(vault: Path | None = VaultOption):
    """List every note in the vault."""
    _, engine = _open_engine(vault)
    for node in engine.get_all_nodes():
        console.print(node.path, markup=False)


@app.command()
def show(
    note: str = typer.Argument(..., help="Path, name or title of the note"),
    vault: Path | None = VaultOption,
):
    """Show a note's title, tags and links."""
    _, engine = _open_engine(vault)
    node = engine.get_node(note)
    if node is None:
        _missing(note)

    console.print(node.title, style="bold", markup=False)
    console.print(f"path: {node.path}", markup=False)
    if node.tags:
        console.print(f"tags: {', '.join(node.tags)}", markup=False)
    if node.outlinks:
        console.print("outlinks:", markup=False)
        for ref in node.outlinks:
            target = engine.resolve_node(ref)
            suffix = f" -> {target.path}" if target is not None else " (dangling)"
            console.print(f"- {ref}{suffix}", markup=False)
    if node.inlinks:
        console.print("backlinks:", markup=False)
        for src in node.inlinks:
            console.print(f"- {src}", markup=False)


@app.command()
def backlinks(
    note: str = typer.Argument(...),
    vault: Path | None = VaultOption,
):
    """List notes that link to NOTE."""
    _, engine = _open_engine(vault)
    if engine.get_node(note) is None:
        _missing(note)
    for src in engine.get_backlinks(note):
        console.print(src, markup=False)


@app.command()
def neighbors(
    note: str = typer.Argument(...),
    depth: int = typer.Option(1, help="How many hops to follow (links in either direction)"),
    vault: Path | None = VaultOption,
):
    """List notes within DEPTH links of NOTE."""
    _, engine = _open_engine(vault)
    if engine.get_node(note) is None:
        _missing(note)
    for node in engine.get_connected_nodes(note, depth=int(depth)):
        console.print(f"{node.path}  ({node.title})", markup=False)


@app.command()
def path(
    source: str = typer.Argument(...),
    target: str = typer.Argument(...),
    vault: Path | None = VaultOption,
):
    """Shortest chain of links between two notes."""
    _, engine = _open_engine(vault)
    for ref in (source, target):
        if engine.get_node(ref) is None:
            _missing(ref)

    hops = engine.find_shortest_path(source, target)
    if hops is None:
        console.print("No path between these notes.", style="yellow")
        raise typer.Exit(code=1)
    console.print(" -> ".join(hops), markup=False)


@app.command()
def hubs(
    limit: int = typer.Option(10, help="Number of notes to show"),
    vault: Path | None = VaultOption,
):
    """Most connected notes."""
    _, engine = _open_engine(vault)

    table = Table(title=f"Top {limit} Hubs")
    table.add_column("#", justify="right", width=4)
    table.add_column("degree", justify="right", width=8)
    table.add_column("note")
    for i, hub in enumerate(engine.get_hub_notes(limit=int(limit)), start=1):
        table.add_row(Text(str(i)), Text(str(hub.degree)), Text(hub.node.path))
    console.print(table)


@app.command()
def clusters(
    min_size: int = typer.Option(2, "--min-size", help="Smallest cluster to show"),
    vault: Path | None = VaultOption,
):
    """Groups of notes connected by links."""
    _, engine = _open_engine(vault)
    found = engine.get_clusters(min_size=int(min_size))
    if not found:
        console.print("No clusters found.", style="yellow")
        return
    for i, members in enumerate(found, start=1):
        console.print(f"\nCluster {i} ({len(members)} notes)", style="bold", markup=False)
        for node in members:
            console.print(f"- {node.path}", markup=False)


@app.command()
def bridges(vault: Path | None = VaultOption):
    """Notes whose removal would split a cluster."""
    _, engine = _open_engine(vault)
    for node in engine.find_bridge_notes():
        console.print(node.path, markup=False)


@app.command()
def orphans(vault: Path | None = VaultOption):
    """Notes with no links in or out."""
    _, engine = _open_engine(vault)
    for node in engine.find_orphaned_nodes():
        console.print(node.path, markup=False)


@app.command()
def tag(
    name: str = typer.Argument(..., help="Tag, with or without the leading #"),
    vault: Path | None = VaultOption,
):
    """Notes carrying a tag."""
    _, engine = _open_engine(vault)
    for node in engine.find_nodes_by_tag(name):
        console.print(node.path, markup=False)


@app.command()
def search(
    query: str = typer.Argument(...),
    limit: int = typer.Option(10, help="Max results"),
    vault: Path | None = VaultOption,
):
    """Keyword search ranked by TF-IDF cosine similarity."""
    _, engine = _open_engine(vault)
    _print_scored(f"Results for '{query}'", engine.semantic_search(query, int(limit)))


@app.command()
def similar(
    note: str = typer.Argument(...),
    limit: int = typer.Option(10, help="Max results"),
    vault: Path | None = VaultOption,
):
    """Notes whose wording is closest to NOTE."""
    _, engine = _open_engine(vault)
    node = engine.get_node(note)
    if node is None:
        _missing(note)
    _print_scored(f"Similar to {node.path}", engine.find_similar(node.path, int(limit)))


@app.command()
def export(
    out: Path | None = typer.Option(None, "--out", help="Write JSON here instead of stdout"),
    vault: Path | None = VaultOption,
):
    """Export nodes and resolved edges as JSON."""
    _, engine = _open_engine(vault)
    payload = json.dumps(engine.export_graph().to_dict(), ensure_ascii=False, indent=2)
    if out is None:
        typer.echo(payload)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(payload + "\n", encoding="utf-8")
    console.print(f"Wrote {len(engine)} notes to {out}")


@app.command()
def watch(
    interval: float | None = typer.Option(None, "--interval", help="Seconds between polls"),
    vault: Path | None = VaultOption,
):
    """Keep the graph in sync with the vault and report changes."""
    settings = Settings()
    vault_, engine = _open_engine(vault)

    def on_changes(changes: VaultChanges) -> None:
        apply_changes(engine, changes)
        for p in changes.added:
            console.print(f"+ {p}", style="green", markup=False)
        for p in changes.modified:
            console.print(f"~ {p}", style="cyan", markup=False)
        for p in changes.deleted:
            console.print(f"- {p}", style="red", markup=False)

    watcher = VaultWatcher(
        vault_,
        on_changes=on_changes,
        poll_interval_s=interval if interval is not None else settings.poll_interval_s,
    )
    watcher.start()
    console.print(f"Watching {vault_.root} ({len(engine)} notes). Ctrl+C to stop.")

    stop = threading.Event()
    try:
        watcher.run(stop)
    except KeyboardInterrupt:
        stop.set()


@app.command()
def serve(
    vault: Path | None = VaultOption,
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
):
    """Run the JSON API (FastAPI)."""
    try:
        import uvicorn
    except ImportError:
        console.print("Missing web dependencies. Install: `pip install -e '.[web]'`", style="red")
        raise typer.Exit(code=2)

    from .web.server import create_app

    settings = Settings()
    app_ = create_app(vault_path=str(vault) if vault is not None else None)
    uvicorn.run(app_, host=host or settings.host, port=int(port or settings.port))


def _print_scored(title: str, hits: list[ScoredPath]) -> None:
    if not hits:
        console.print("No matches.", style="yellow")
        return
    table = Table(title=title)
    table.add_column("#", justify="right", width=4)
    table.add_column("score", justify="right", width=8)
    table.add_column("note")
    for i, h in enumerate(hits, start=1):
        table.add_row(Text(str(i)), Text(f"{h.score:.4f}"), Text(h.path))
    console.print(table)


if __name__ == "__main__":
    app()
