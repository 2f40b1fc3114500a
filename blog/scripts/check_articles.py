"""
Report articles whose stored derived fields (slug, html, reading time)
no longer match a fresh derivation, e.g. after a sanitizer allow-list change.

Usage: python -m blog.scripts.check_articles [--fix]
"""
import argparse
import sys
from typing import Dict, List, Tuple

from sqlalchemy.exc import IntegrityError

from blog import create_app, db
from blog.models import Article
from blog.pipeline import Derived, derive


def stale_fields(article: Article) -> Tuple[Derived, Dict[str, Tuple]]:
    fresh = derive(article.title, article.markdown)
    diff = {}
    for name in ("slug", "sanitized_html", "reading_time"):
        stored, expected = getattr(article, name), getattr(fresh, name)
        if stored != expected:
            diff[name] = (stored, expected)
    return fresh, diff


def find_stale(articles: List[Article]) -> List[Tuple[Article, Derived, Dict[str, Tuple]]]:
    out = []
    for a in articles:
        fresh, diff = stale_fields(a)
        if diff:
            out.append((a, fresh, diff))
    return out


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Check derived article fields")
    parser.add_argument("--fix", action="store_true", help="rewrite stale derived fields")
    args = parser.parse_args(argv)

    app = create_app()
    with app.app_context():
        articles = db.session.query(Article).order_by(Article.id).all()
        stale = find_stale(articles)
        print(f"Total: {len(articles)}")
        print(f"Stale: {len(stale)}")
        for a, _, diff in stale:
            print("-", a.id, a.slug, "|", ", ".join(sorted(diff)))

        if args.fix and stale:
            for a, fresh, _ in stale:
                fresh.apply(a)
            try:
                db.session.commit()
                print(f"fixed {len(stale)} articles")
            except IntegrityError as e:
                db.session.rollback()
                print("fix failed, slug collision:", e.orig)
                return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
