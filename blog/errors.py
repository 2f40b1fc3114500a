"""Error taxonomy for the article pipeline.

Every expected failure of a gateway operation is one of these. They are
raised inside the gateway and handed to callers inside a ``Result``; the
routing layer only ever inspects them.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ArticleError(Exception):
    code = "article_error"

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.field:
            out["field"] = self.field
        return out


class ValidationError(ArticleError):
    """A required field is missing or a field breaks its constraint."""

    code = "validation_error"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message, field=field)


class DuplicateSlug(ArticleError):
    code = "duplicate_slug"

    def __init__(self, slug: str) -> None:
        super().__init__(
            f"an article with slug '{slug}' already exists; choose a different title",
            field="title",
        )
        self.slug = slug

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out["slug"] = self.slug
        return out


class NotFound(ArticleError):
    code = "not_found"

    def __init__(self, article_id: Any) -> None:
        super().__init__(f"article {article_id!r} not found")
        self.article_id = article_id


class StoreUnavailable(ArticleError):
    """The database could not be reached; the only retryable kind."""

    code = "store_unavailable"
