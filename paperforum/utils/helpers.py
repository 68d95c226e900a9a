"""
Common utility functions and helpers.
"""
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set
import math
import re
import unicodedata


STOP_WORDS: Set[str] = {
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "this", "that", "these", "those", "we", "our", "study",
    "research", "paper", "work", "analysis", "results", "show", "demonstrate",
    "propose", "present", "conclusion", "method", "approach",
}

# first matching pattern wins, so order matters
FIELD_PATTERNS = [
    (r"\bai\b|machine learning|neural network|deep learning", "Computer Science"),
    (r"climate|environment|sustainability|carbon", "Environmental Science"),
    (r"gene|dna|crispr|protein|molecular", "Biotechnology"),
    (r"quantum|physics|particle|photon", "Physics"),
    (r"brain|neuron|cognitive|neural", "Neuroscience"),
    (r"cancer|disease|therapy|medical|clinical", "Medicine"),
    (r"space|planet|astronomy|cosmology", "Space Science"),
]

ARXIV_CATEGORY_FIELDS = [
    ("cs.", "Computer Science"),
    ("physics.", "Physics"),
    ("q-bio.", "Biology"),
    ("math.", "Mathematics"),
    ("stat.", "Statistics"),
    ("econ.", "Economics"),
    ("astro-ph", "Astrophysics"),
]

DEFAULT_FIELD = "General Science"


def utcnow() -> datetime:
    """Timezone-aware UTC now; timestamp columns are `timestamptz` on PostgreSQL."""
    return datetime.now(timezone.utc)


def normalize_text(text: str) -> str:
    """
    Collapse whitespace and normalise unicode.

    Args:
        text: Raw text string

    Returns:
        Normalized text
    """
    text = unicodedata.normalize("NFKC", text)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def slugify(name: str) -> str:
    """Lowercase *name* and replace every run of non-alphanumerics with a dash."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def extract_keywords(text: str, limit: int = 8, stop_words: Optional[Set[str]] = None) -> List[str]:
    """
    Most frequent words longer than three characters, excluding stop words.

    Args:
        text: Free text such as an abstract
        limit: Maximum number of keywords

    Returns:
        Keywords ordered by frequency, ties in first-seen order
    """
    stop_words = STOP_WORDS if stop_words is None else stop_words
    words = re.sub(r"[^\w\s]", " ", text.lower()).split()
    counts = Counter(w for w in words if len(w) > 3 and w not in stop_words)
    return [word for word, _ in counts.most_common(limit)]


def infer_field_from_keywords(keywords: Iterable[str]) -> str:
    """Map keywords to a research field using ``FIELD_PATTERNS``."""
    joined = " ".join(keywords).lower()
    for pattern, field in FIELD_PATTERNS:
        if re.search(pattern, joined):
            return field
    return DEFAULT_FIELD


def map_arxiv_category(category: Optional[str]) -> str:
    """Map an arXiv category such as ``cs.LG`` to a research field."""
    if not category:
        return DEFAULT_FIELD
    for prefix, field in ARXIV_CATEGORY_FIELDS:
        if category.startswith(prefix):
            return field
    return DEFAULT_FIELD


def total_pages(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return math.ceil(total / limit)
