from functools import wraps
import hmac

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, session, url_for

from . import get_gateway
from .errors import DuplicateSlug, NotFound, StoreUnavailable

admin_bp = Blueprint("admin", __name__)

FORM_FIELDS = ("title", "description", "markdown", "author", "category", "featured_image", "tags")


def _sec_eq(a: str, b: str) -> bool:
    return hmac.compare_digest((a or "").strip().encode(), (b or "").strip().encode())


def require_admin(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not session.get("is_admin"):
            return redirect(url_for("admin.login"))
        return view(*args, **kwargs)
    return wrapped


def article_from_form(form) -> dict:
    """Form post -> gateway fields. Unchecked checkbox means unpublished."""
    data = {k: form.get(k, "") for k in FORM_FIELDS}
    data["published"] = form.get("published") == "on"
    return data


def form_values(article=None) -> dict:
    if article is None:
        return {"published": True, "author": "", "tags": ""}
    if isinstance(article, dict):
        return article
    out = {k: getattr(article, k) or "" for k in FORM_FIELDS}
    out["tags"] = ", ".join(article.tags or [])
    out["published"] = article.published
    out["id"] = article.id
    return out


def _status_for(error) -> int:
    if isinstance(error, NotFound):
        return 404
    if isinstance(error, DuplicateSlug):
        return 409
    if isinstance(error, StoreUnavailable):
        return 503
    return 400


def _flash_error(error):
    label = f"{error.field}: " if error.field else ""
    flash(label + error.message, "error")


@admin_bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        cfg = current_app.config
        expected = cfg.get("ADMIN_PASSWORD") or ""
        if not expected:
            current_app.logger.warning("login attempted but ADMIN_PASSWORD is not set")
        ok = bool(expected) and _sec_eq(request.form.get("username"), cfg.get("ADMIN_USERNAME")) \
            and _sec_eq(request.form.get("password"), expected)
        if ok:
            session["is_admin"] = True
            return redirect(url_for("admin.new_article"))
        return render_template("login.html", error="Invalid credentials"), 401
    return render_template("login.html", error=None)


@admin_bp.post("/logout")
def logout():
    session.clear()
    return redirect(url_for("main.index"))


@admin_bp.get("/admin")
@require_admin
def admin():
    res = get_gateway().list()
    if not res.ok:
        abort(_status_for(res.error))
    return render_template("admin.html", items=res.value)


@admin_bp.get("/admin/articles/new")
@require_admin
def new_article():
    return render_template("articles/new.html", article=form_values())


@admin_bp.post("/articles")
@require_admin
def create_article():
    data = article_from_form(request.form)
    res = get_gateway().create(data)
    if not res.ok:
        _flash_error(res.error)
        return render_template("articles/new.html", article=data), _status_for(res.error)
    flash("Article created", "success")
    return redirect(url_for("main.article", slug=res.value.slug))


@admin_bp.route("/articles/<int:aid>/edit", methods=["GET", "POST"])
@require_admin
def edit_article(aid):
    gw = get_gateway()
    if request.method == "POST":
        data = article_from_form(request.form)
        res = gw.update(aid, data)
        if not res.ok:
            _flash_error(res.error)
            data["id"] = aid
            return render_template("articles/edit.html", article=data), _status_for(res.error)
        flash("Article saved", "success")
        return redirect(url_for("main.article", slug=res.value.slug))

    res = gw.get(aid)
    if not res.ok:
        abort(_status_for(res.error))
    return render_template("articles/edit.html", article=form_values(res.value))


@admin_bp.post("/articles/<int:aid>/delete")
@require_admin
def delete_article(aid):
    res = get_gateway().delete(aid)
    if not res.ok:
        abort(_status_for(res.error))
    flash("Article deleted", "success")
    return redirect(url_for("admin.admin"))
