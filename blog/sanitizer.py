"""Markdown to safe HTML.

Author input comes from a web form and is treated as hostile: the Markdown
is rendered first (raw HTML in it passes through), then the result is
cleaned against an allow-list so nothing executable survives.
"""

from __future__ import annotations

import html
import logging

import markdown as md
import nh3

log = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ["nl2br", "fenced_code", "tables", "sane_lists"]
MARKDOWN_EXTENSION_CONFIGS = {"tables": {"use_align_attribute": True}}

ALLOWED_TAGS = {
    # prose
    "p", "br", "hr", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote",
    "strong", "em", "b", "i", "del", "s", "sub", "sup", "ul", "ol", "li",
    # links, images, code
    "a", "img", "pre", "code",
    # tables
    "table", "thead", "tbody", "tr", "th", "td",
}

ALLOWED_ATTRIBUTES = {
    "a": {"href", "title"},
    "img": {"src", "alt", "title"},
    "code": {"class"},
    "th": {"align"},
    "td": {"align"},
}

ALLOWED_URL_SCHEMES = {"http", "https", "mailto"}

# dropped together with everything inside them
STRIPPED_CONTENT_TAGS = {"script", "style"}


def to_html(markdown: str) -> str:
    """Markdown stage only; single newlines become <br>."""
    return md.markdown(
        markdown,
        extensions=MARKDOWN_EXTENSIONS,
        extension_configs=MARKDOWN_EXTENSION_CONFIGS,
        output_format="html",
    )


def sanitize(raw_html: str) -> str:
    return nh3.clean(
        raw_html,
        tags=ALLOWED_TAGS,
        clean_content_tags=STRIPPED_CONTENT_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        url_schemes=ALLOWED_URL_SCHEMES,
        link_rel="noopener noreferrer",
        strip_comments=True,
    )


def render(markdown: str) -> str:
    """Render author Markdown to sanitized HTML. Never raises."""
    if not markdown:
        return ""
    try:
        raw = to_html(markdown)
    except Exception:
        log.warning("markdown rendering failed, echoing source as text", exc_info=True)
        raw = "<p>" + html.escape(markdown) + "</p>"
    return sanitize(raw)
