"""
Bulk-import articles from a JSON file through the gateway.

Accepts a list of article objects or a single object, in the same shape the
editor form posts (``tags`` may be a comma-separated string, ``published``
may be ``"on"``). Every item goes through validation and derivation; items
that fail are reported and skipped, the rest are committed one by one.

Usage: python -m blog.scripts.import_articles <path_to_json>
"""
import argparse
import json
import os
import sys
from typing import Any, Dict, List, Tuple

from blog import create_app, db
from blog.gateway import ArticleGateway, EDITABLE_FIELDS

TRUTHY = {"on", "true", "yes", "1"}


def normalize_item(item: Dict[str, Any]) -> Dict[str, Any]:
    out = {k: v for k, v in item.items() if k in EDITABLE_FIELDS}
    published = out.get("published", True)
    if isinstance(published, str):
        out["published"] = published.strip().lower() in TRUTHY
    elif published is None:
        out["published"] = True
    return out


def import_articles(items: List[Dict[str, Any]], gateway: ArticleGateway) -> Tuple[int, List[str]]:
    created, errors = 0, []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            errors.append(f"#{idx}: not an object")
            continue
        res = gateway.create(normalize_item(item))
        if res.ok:
            created += 1
        else:
            errors.append(f"#{idx} ({item.get('title')!r}): {res.error.message}")
    return created, errors


def load_items(path: str) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    return raw if isinstance(raw, list) else [raw]


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import articles from JSON")
    parser.add_argument("path")
    args = parser.parse_args(argv)

    if not os.path.exists(args.path):
        print(f"File not found: {args.path}")
        return 1

    app = create_app()
    with app.app_context():
        gw = ArticleGateway(db.session, retries=app.config.get("STORE_RETRIES", 2))
        created, errors = import_articles(load_items(args.path), gw)
    for e in errors:
        print("[warn]", e)
    print(f"Imported {created} articles.")
    return 0 if not errors else 2


if __name__ == "__main__":
    sys.exit(main())
