"""Persistence gateway for articles.

Validates input, runs the derivation stage, and commits. The unique
constraint on ``slug`` is the real guard against duplicates; the query
done before insert only gives a friendlier error in the common case.

Every public method returns a ``Result``. Expected failures (validation,
duplicate slug, missing id, store outage) travel in ``Result.error``;
anything else is a bug and propagates.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from .errors import ArticleError, DuplicateSlug, NotFound, StoreUnavailable, ValidationError
from .models import Article
from .pipeline import derive

log = logging.getLogger(__name__)

DEFAULT_AUTHOR = "Anonymous"

EDITABLE_FIELDS = (
    "title", "description", "markdown", "author",
    "tags", "category", "featured_image", "published",
)
PROTECTED_FIELDS = ("id", "slug", "sanitized_html", "reading_time", "created_at")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Result:
    value: Any = None
    error: Optional[ArticleError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _is_transient(exc: DBAPIError) -> bool:
    return isinstance(exc, OperationalError) or bool(getattr(exc, "connection_invalidated", False))


def _is_slug_violation(exc: IntegrityError) -> bool:
    msg = str(getattr(exc, "orig", exc)).lower()
    return "slug" in msg


def _max_length(field: str) -> Optional[int]:
    column = Article.__table__.columns.get(field)
    return getattr(column.type, "length", None) if column is not None else None


def _check_length(value: str, field: str) -> str:
    limit = _max_length(field)
    if limit is not None and len(value) > limit:
        raise ValidationError(field, f"{field} must be at most {limit} characters")
    return value


def _optional_text(value: Any, field: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(field, f"{field} must be text")
    value = value.strip()
    return _check_length(value, field) if value else None


def _required_text(value: Any, field: str, strip: bool = True) -> str:
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(field, f"{field} is required")
    return _check_length(value.strip() if strip else value, field)


def _tags(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        raise ValidationError("tags", "tags must be a list of text or a comma-separated string")
    out = []
    for t in value:
        if not isinstance(t, str):
            raise ValidationError("tags", "every tag must be text")
        t = t.strip()
        if t:
            out.append(t)
    return out


def _image_url(value: Any) -> Optional[str]:
    url = _optional_text(value, "featured_image")
    if url is None:
        return None
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("featured_image", "featured_image must be an http(s) URL")
    return url


def clean_fields(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Validate and normalize caller-supplied fields.

    With ``partial=True`` only the keys present are checked (an update
    patch); otherwise title and markdown are required and defaults are
    filled in.
    """
    for key in data:
        if key in PROTECTED_FIELDS:
            raise ValidationError(key, f"{key} is derived and cannot be set directly")
        if key not in EDITABLE_FIELDS:
            raise ValidationError(key, f"unknown field '{key}'")

    out: Dict[str, Any] = {}
    if not partial or "title" in data:
        out["title"] = _required_text(data.get("title"), "title")
    if not partial or "markdown" in data:
        out["markdown"] = _required_text(data.get("markdown"), "markdown", strip=False)
    if not partial or "description" in data:
        out["description"] = _optional_text(data.get("description"), "description")
    if not partial or "author" in data:
        out["author"] = _optional_text(data.get("author"), "author") or DEFAULT_AUTHOR
    if not partial or "tags" in data:
        out["tags"] = _tags(data.get("tags"))
    if not partial or "category" in data:
        out["category"] = _optional_text(data.get("category"), "category")
    if not partial or "featured_image" in data:
        out["featured_image"] = _image_url(data.get("featured_image"))
    if not partial or "published" in data:
        published = data.get("published", True)
        if not isinstance(published, bool):
            raise ValidationError("published", "published must be true or false")
        out["published"] = published
    return out


class ArticleGateway:
    """CRUD over the articles table with derived fields kept in sync."""

    def __init__(
        self,
        session,
        clock: Callable[[], datetime] = utcnow,
        retries: int = 2,
        backoff: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session
        self.clock = clock
        self.retries = max(0, int(retries))
        self.backoff = backoff
        self.sleep = sleep
        self._retrying = False

    # ---------- public operations ----------

    def create(self, candidate: Dict[str, Any]) -> Result:
        return self._run("create", self._create, candidate)

    def update(self, article_id: int, patch: Dict[str, Any]) -> Result:
        return self._run("update", self._update, article_id, patch)

    def list(self, published: Optional[bool] = None) -> Result:
        return self._run("list", self._list, published)

    def delete(self, article_id: int) -> Result:
        return self._run("delete", self._delete, article_id)

    def get(self, article_id: int) -> Result:
        return self._run("get", self._get, article_id)

    def get_by_slug(self, slug: str) -> Result:
        return self._run("get_by_slug", self._get_by_slug, slug)

    # ---------- internals ----------

    def _run(self, op: str, fn: Callable, *args) -> Result:
        attempt = 0
        while True:
            self._retrying = attempt > 0
            try:
                return Result(value=fn(*args))
            except ArticleError as e:
                self.session.rollback()
                log.info("%s rejected: %s", op, e.message)
                return Result(error=e)
            except DBAPIError as e:
                self.session.rollback()
                if not _is_transient(e):
                    raise
                if attempt >= self.retries:
                    log.error("%s failed, store unavailable after %d attempts: %s", op, attempt + 1, e)
                    return Result(error=StoreUnavailable(f"database unavailable during {op}"))
                delay = self.backoff * (2 ** attempt)
                attempt += 1
                log.warning("%s hit a store error, retry %d/%d in %.2fs", op, attempt, self.retries, delay)
                self.sleep(delay)

    def _load(self, article_id: int) -> Article:
        article = self.session.get(Article, article_id)
        if article is None:
            raise NotFound(article_id)
        return article

    def _check_slug_free(self, slug: str, exclude_id: Optional[int] = None) -> None:
        stmt = select(Article.id).where(Article.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(Article.id != exclude_id)
        if self.session.execute(stmt.limit(1)).first() is not None:
            raise DuplicateSlug(slug)

    def _committed_on_earlier_attempt(self, slug: str, fields: Dict[str, Any]) -> Optional[Article]:
        """
        A commit can fail on the wire after the server already applied it.
        On a retry, a row with our slug and exactly our fields is that insert.
        """
        if not self._retrying:
            return None
        existing = self.session.execute(
            select(Article).where(Article.slug == slug)
        ).scalar_one_or_none()
        if existing is None:
            return None
        if all(getattr(existing, k) == v for k, v in fields.items()):
            return existing
        return None

    def _commit(self, slug: str) -> None:
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            # lost a race with a concurrent writer; the index caught it
            if _is_slug_violation(e):
                raise DuplicateSlug(slug) from e
            raise

    def _create(self, candidate: Dict[str, Any]) -> Article:
        fields = clean_fields(candidate)
        derived = derive(fields["title"], fields["markdown"])
        try:
            self._check_slug_free(derived.slug)
        except DuplicateSlug:
            existing = self._committed_on_earlier_attempt(derived.slug, fields)
            if existing is None:
                raise
            log.info("create retry found its own earlier insert %s (%s)", existing.id, existing.slug)
            return existing

        article = Article(created_at=self.clock(), **fields)
        derived.apply(article)
        self.session.add(article)
        self._commit(article.slug)
        log.info("created article %s (%s)", article.id, article.slug)
        return article

    def _update(self, article_id: int, patch: Dict[str, Any]) -> Article:
        article = self._load(article_id)
        fields = clean_fields(patch, partial=True)

        new_title = fields.get("title")
        new_markdown = fields.get("markdown")
        derived = derive(
            title=new_title if new_title is not None and new_title != article.title else None,
            markdown=new_markdown if new_markdown is not None and new_markdown != article.markdown else None,
        )
        if derived.slug is not None and derived.slug != article.slug:
            self._check_slug_free(derived.slug, exclude_id=article.id)

        for key, value in fields.items():
            setattr(article, key, value)
        derived.apply(article)
        self._commit(article.slug)
        log.info("updated article %s (%s)", article.id, article.slug)
        return article

    def _list(self, published: Optional[bool]) -> List[Article]:
        stmt = select(Article)
        if published is not None:
            stmt = stmt.where(Article.published == published)
        stmt = stmt.order_by(Article.created_at.desc(), Article.id.desc())
        return list(self.session.execute(stmt).scalars())

    def _delete(self, article_id: int) -> bool:
        article = self._load(article_id)
        slug = article.slug
        self.session.delete(article)
        self.session.commit()
        log.info("deleted article %s (%s)", article_id, slug)
        return True

    def _get(self, article_id: int) -> Article:
        return self._load(article_id)

    def _get_by_slug(self, slug: str) -> Article:
        article = self.session.execute(
            select(Article).where(Article.slug == slug)
        ).scalar_one_or_none()
        if article is None:
            raise NotFound(slug)
        return article
