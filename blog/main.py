from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, session, url_for

from . import get_gateway
from .errors import NotFound
from .mail import send_contact_message

main_bp = Blueprint("main", __name__)


def _published_articles():
    res = get_gateway().list(published=True)
    if not res.ok:
        # a broken store still renders the page, just empty
        current_app.logger.error("could not load articles: %s", res.error.message)
        return []
    return res.value


@main_bp.get("/")
def index():
    return render_template("articles/index.html", articles=_published_articles())


@main_bp.get("/home")
def home():
    return render_template("articles/index.html", articles=_published_articles())


@main_bp.get("/articles/<slug>")
def article(slug):
    res = get_gateway().get_by_slug(slug)
    if not res.ok:
        abort(404 if isinstance(res.error, NotFound) else 503)
    a = res.value
    if not a.published and not session.get("is_admin"):
        abort(404)
    return render_template("articles/show.html", article=a)


@main_bp.get("/about")
def about():
    return render_template("about.html")


@main_bp.route("/contact", methods=["GET", "POST"])
def contact():
    if request.method == "POST":
        name = (request.form.get("name") or "").strip()
        email = (request.form.get("email") or "").strip()
        message = (request.form.get("message") or "").strip()
        if not (name and email and message):
            flash("Please fill in name, email and message.", "error")
            return render_template("contact.html", form=request.form), 400
        if any(ch in name + email for ch in "\r\n"):
            flash("Name and email must be on a single line.", "error")
            return render_template("contact.html", form=request.form), 400
        if send_contact_message(name, email, message):
            flash("Message sent successfully!", "success")
            return redirect(url_for("main.contact"))
        flash("Error sending message. Please try again.", "error")
        return render_template("contact.html", form=request.form), 502
    return render_template("contact.html", form={})
