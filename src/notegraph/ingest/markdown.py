from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

import frontmatter
import yaml


logger = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
_WIKILINK_RE = re.compile(r"\[\[([^\]|]+)(\|([^\]]+))?\]\]")
_MDLINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
# Inline tags must start a line or follow whitespace, so URL anchors and
# hex colours are not picked up.
_TAG_RE = re.compile(r"(?:^|(?<=\s))#([a-zA-Z][a-zA-Z0-9_/-]*)", re.MULTILINE)
_FENCE_RE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE_RE = re.compile(r"`[^`]+`")


@dataclass(frozen=True)
class Link:
    target: str
    text: str | None
    kind: str  # "wikilink" | "markdown"


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    line: int  # 1-based, relative to the body


@dataclass(frozen=True)
class Note:
    path: str
    title: str
    content: str
    frontmatter: dict[str, Any] = field(default_factory=dict)
    links: list[Link] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    headings: list[Heading] = field(default_factory=list)

    @property
    def link_targets(self) -> list[str]:
        return [ln.target for ln in self.links]


def parse_note(text: str, path: str, *, extension: str = ".md") -> Note:
    """Parse raw markdown into a :class:`Note`.

    Frontmatter is optional. A block that is not valid YAML is left in the
    body rather than failing the whole note.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    try:
        post = frontmatter.loads(text)
        meta = dict(post.metadata)
        body = post.content
    except yaml.YAMLError as e:
        logger.warning("Ignoring malformed frontmatter in %s: %s", path, e)
        meta = {}
        body = text

    title = meta.get("title")
    if not title:
        title = file_stem(path, extension)

    return Note(
        path=path,
        title=str(title),
        content=body,
        frontmatter=meta,
        links=extract_links(body),
        tags=extract_tags(body, meta),
        headings=extract_headings(body),
    )


def file_stem(path: str, extension: str = ".md") -> str:
    name = path.rsplit("/", 1)[-1]
    if extension and name.endswith(extension):
        name = name[: -len(extension)]
    return name


def extract_links(content: str) -> list[Link]:
    links: list[Link] = []

    for m in _WIKILINK_RE.finditer(content):
        display = m.group(3)
        links.append(
            Link(
                target=m.group(1).strip(),
                text=display.strip() if display is not None else None,
                kind="wikilink",
            )
        )

    for m in _MDLINK_RE.finditer(content):
        target = m.group(2)
        # External links are not part of the note graph.
        if target.startswith("http://") or target.startswith("https://"):
            continue
        if target.endswith(".md"):
            target = target[:-3]
        links.append(Link(target=target, text=m.group(1), kind="markdown"))

    return links


def extract_tags(content: str, meta: dict[str, Any] | None = None) -> list[str]:
    tags: set[str] = set()

    raw = (meta or {}).get("tags")
    if isinstance(raw, str):
        fm_tags = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        fm_tags = [str(t) for t in raw]
    elif raw is not None:
        fm_tags = [str(raw)]
    else:
        fm_tags = []
    for t in fm_tags:
        n = normalize_tag(t)
        if n:
            tags.add(n)

    for m in _TAG_RE.finditer(strip_code(content)):
        tags.add(normalize_tag(m.group(1)))

    return sorted(tags)


def extract_headings(content: str) -> list[Heading]:
    out: list[Heading] = []
    for idx, line in enumerate(content.split("\n"), start=1):
        m = _HEADING_RE.match(line)
        if m:
            out.append(Heading(level=len(m.group(1)), text=m.group(2).strip(), line=idx))
    return out


def strip_code(content: str) -> str:
    stripped = _FENCE_RE.sub("", content)
    return _INLINE_CODE_RE.sub("", stripped)


def normalize_tag(tag: str) -> str:
    t = tag.strip()
    if t.startswith("#"):
        t = t[1:]
    return t.lower()
