import os

from sqlalchemy import Index, UniqueConstraint

from . import db

ARTICLES_TABLE = os.getenv("ARTICLES_TABLE", "articles")


class Article(db.Model):
    __tablename__ = ARTICLES_TABLE

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text)
    markdown = db.Column(db.Text, nullable=False)
    # derived; written only by blog.pipeline
    sanitized_html = db.Column(db.Text, nullable=False)
    slug = db.Column(db.String(255), nullable=False)
    reading_time = db.Column(db.Integer, nullable=False, default=0)

    author = db.Column(db.String(200), nullable=False, default="Anonymous")
    tags = db.Column(db.JSON, nullable=False, default=list)
    category = db.Column(db.String(200))
    featured_image = db.Column(db.String(1024))
    published = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("slug", name="uq_articles_slug"),
        Index("ix_articles_created_at", "created_at"),
        Index("ix_articles_published", "published"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "markdown": self.markdown,
            "sanitized_html": self.sanitized_html,
            "slug": self.slug,
            "author": self.author,
            "tags": list(self.tags or []),
            "category": self.category,
            "featured_image": self.featured_image,
            "reading_time": self.reading_time,
            "published": self.published,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<Article {self.id} {self.slug!r}>"
