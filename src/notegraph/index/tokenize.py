from __future__ import annotations

import re


STOPWORDS = frozenset(
    {
        "the", "a", "an", "is", "are", "was", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would", "could",
        "should", "may", "might", "can", "shall", "must",
        "in", "on", "at", "to", "for", "of", "with", "from", "by", "as",
        "and", "or", "but", "not", "nor", "so", "yet",
        "this", "that", "these", "those", "it", "its",
        "if", "then", "than", "when", "where", "how", "what", "which", "who",
        "all", "each", "every", "both", "few", "more", "most", "some", "any",
        "no", "only", "own", "same", "such", "too", "very",
        "just", "about", "above", "after", "again", "also", "because", "before",
        "between", "during", "into", "through", "under", "until", "while",
    }
)

# Markdown decoration, applied in order. Link rewrites keep the wikilink
# target and the markdown link text; the URL part is dropped.
_MARKDOWN_RULES: list[tuple[re.Pattern[str], str, int]] = [
    (re.compile(r"```[\s\S]*?```"), " ", 0),
    (re.compile(r"`[^`]+`"), " ", 0),
    (re.compile(r"\[\[([^\]|]+)(\|[^\]]+)?\]\]"), r"\1", 0),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1", 0),
    (re.compile(r"^#{1,6}\s+", re.MULTILINE), "", 0),
    (re.compile(r"[*_~]+"), " ", 0),
    # Only the first frontmatter-style block is removed.
    (re.compile(r"^---[\s\S]*?---", re.MULTILINE), " ", 1),
    (re.compile(r"^>\s+", re.MULTILINE), " ", 0),
    (re.compile(r"[-|]+"), " ", 0),
]

_SPLIT_RE = re.compile(r"[^a-z0-9]+")

# (suffix, chars to drop, replacement, minimum word length)
_SUFFIX_RULES: list[tuple[str, int, str, int]] = [
    ("ation", 5, "", 0),
    ("tion", 4, "", 0),
    ("ness", 4, "", 0),
    ("ment", 4, "", 0),
    ("able", 4, "", 0),
    ("ible", 4, "", 0),
    ("ing", 3, "", 6),
    ("ies", 3, "y", 5),
    ("ed", 2, "", 5),
    ("ly", 2, "", 5),
    ("es", 2, "", 5),
]


def strip_markdown(text: str) -> str:
    for pattern, repl, count in _MARKDOWN_RULES:
        text = pattern.sub(repl, text, count=count)
    return text


def tokenize(text: str) -> list[str]:
    """Split text into lowercase, stopword-free, stemmed terms."""
    cleaned = strip_markdown(text).lower()
    return [stem(tok) for tok in _SPLIT_RE.split(cleaned) if len(tok) >= 2 and tok not in STOPWORDS]


def stem(word: str) -> str:
    """Strip one common English suffix (first matching rule wins).

    This is a crude suffix stripper, not a linguistic stemmer: it only keeps
    inflected forms of the same word close enough to share a term.
    """
    if len(word) <= 3:
        return word

    for suffix, drop, repl, min_len in _SUFFIX_RULES:
        if word.endswith(suffix) and len(word) >= min_len:
            return word[:-drop] + repl

    if word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word
