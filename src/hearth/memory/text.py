"""Text normalisation helpers shared by detectors, merger and retriever."""

import re

_WHITESPACE = re.compile(r"\s+")
_TOKEN = re.compile(r"[a-z0-9']+")
_SENTENCE_END = re.compile(r"[.!?;\n]")
_FRAGMENT_END = re.compile(r"[.!?,;\n]")

# Matches the term stored in nickname records, e.g.
# "User prefers to be called: Star." / "User responds positively to being called: pet."
STORED_TERM_PATTERN = re.compile(
    r"(?:responds positively to being called|prefers to be called):\s*([^.,]+)",
    re.IGNORECASE,
)

STOPWORDS = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "but", "by", "for", "from",
        "i", "i'm", "in", "is", "it", "it's", "me", "my", "of", "on", "or",
        "so", "that", "the", "this", "to", "was", "with", "you", "your",
        "user", "likes", "prefers", "very", "really", "just",
    }
)

# Fixed wording of the record templates. Only the variable part of a
# record says which fact it holds.
TEMPLATE_WORDS = frozenset(
    {
        "felt", "happy", "positive", "about", "reference", "bring", "them",
        "joy", "boundary", "shared", "playful", "moment", "responds",
        "positively", "being", "called", "use", "naturally", "conversations",
        "longer", "updated", "based", "conversation",
    }
)


def normalize(text: str) -> str:
    """Lowercase, trim and collapse whitespace."""
    return _WHITESPACE.sub(" ", text.strip().lower())


def dedup_key(text: str, limit: int = 100) -> str:
    """Normalised, truncated key used for same-run deduplication."""
    return normalize(text)[:limit].strip()


def clip_fragment(text: str) -> str:
    """Cut a fragment at the first sentence or clause punctuation."""
    match = _FRAGMENT_END.search(text)
    return (text[: match.start()] if match else text).strip()


def sentence_span(text: str, start: int, end: int) -> tuple[int, int]:
    """Bounds of the sentence of text containing the span [start, end).

    Surrounding whitespace is excluded from the returned bounds.
    """
    begin = 0
    for match in _SENTENCE_END.finditer(text, 0, start):
        begin = match.end()
    stop_match = _SENTENCE_END.search(text, end)
    stop = stop_match.start() if stop_match else len(text)
    while begin < stop and text[begin].isspace():
        begin += 1
    while stop > begin and text[stop - 1].isspace():
        stop -= 1
    return begin, stop


def sentence_around(text: str, start: int, end: int) -> str:
    """Return the sentence of text containing the span [start, end)."""
    begin, stop = sentence_span(text, start, end)
    return text[begin:stop]


def tokens(text: str) -> list[str]:
    """Content tokens of text, without stopwords."""
    return [t for t in _TOKEN.findall(text.lower()) if t not in STOPWORDS]


def content_tokens(text: str) -> set[str]:
    """Distinct tokens of the variable part of a record."""
    return {t for t in tokens(text) if t not in TEMPLATE_WORDS}


def token_overlap(a: str, b: str) -> float:
    """Share of distinct content tokens two texts have in common.

    Shared tokens divided by the larger token set, so a short text fully
    contained in a long one does not count as a duplicate. Stopwords and
    template wording ("User felt happy/positive about:") do not count.
    """
    ta = content_tokens(a)
    tb = content_tokens(b)
    if not ta or not tb:
        return 0.0
    return len(ta & tb) / max(len(ta), len(tb))


def stored_term(content: str) -> str | None:
    """Extract the normalised nickname term from a stored record, if any."""
    match = STORED_TERM_PATTERN.search(content)
    if not match:
        return None
    return normalize(match.group(1)) or None


def truncate(text: str, limit: int) -> str:
    """Trim text to at most limit characters, on a word boundary when possible."""
    text = text.strip()
    if len(text) <= limit:
        return text
    cut = text[:limit].rsplit(" ", 1)[0]
    return cut or text[:limit]
