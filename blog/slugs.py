# blog/slugs.py
import hashlib

from slugify import slugify as _ext_slugify

SLUG_MAX_LENGTH = 200
FALLBACK_PREFIX = "article"


def short_hash(text: str, size: int = 8) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()[:size]


def generate_slug(title: str) -> str:
    """
    URL-safe slug for a title: lowercase, transliterated, non-alphanumeric
    runs collapsed to a single hyphen, no leading/trailing hyphen.
    Titles that reduce to nothing (emoji, punctuation) get
    ``article-<sha1 prefix>`` so the result stays deterministic.
    """
    if title is None or not title.strip():
        raise ValueError("cannot build a slug from an empty title")
    s = _ext_slugify(
        title,
        lowercase=True,
        max_length=SLUG_MAX_LENGTH,
        word_boundary=True,
    )
    return s or f"{FALLBACK_PREFIX}-{short_hash(title.strip())}"
