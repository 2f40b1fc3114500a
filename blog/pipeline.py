# blog/pipeline.py
from dataclasses import dataclass
from typing import Optional

from .metadata import reading_time
from .sanitizer import render
from .slugs import generate_slug


@dataclass
class Derived:
    """Fields computed from title/markdown. ``None`` means "source unchanged"."""

    slug: Optional[str] = None
    sanitized_html: Optional[str] = None
    reading_time: Optional[int] = None

    def apply(self, article) -> None:
        if self.slug is not None:
            article.slug = self.slug
        if self.sanitized_html is not None:
            article.sanitized_html = self.sanitized_html
        if self.reading_time is not None:
            article.reading_time = self.reading_time


def derive(title: Optional[str] = None, markdown: Optional[str] = None) -> Derived:
    """
    Run slug / sanitizer / reading-time for whichever sources are given.
    Each step depends only on its own raw input, so order does not matter.
    """
    out = Derived()
    if title is not None:
        out.slug = generate_slug(title)
    if markdown is not None:
        out.sanitized_html = render(markdown)
        out.reading_time = reading_time(markdown)
    return out
