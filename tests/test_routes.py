from blog import db, main
from blog.gateway import ArticleGateway
from tests.conftest import StepClock, make


def _gw():
    return ArticleGateway(db.session, clock=StepClock())


def test_healthz(client):
    assert client.get("/healthz").get_json() == {"ok": True}


def test_index_shows_only_published(client):
    gw = _gw()
    make(gw, title="Visible Post")
    make(gw, title="Hidden Draft", published=False)
    for path in ("/", "/home"):
        body = client.get(path).get_data(as_text=True)
        assert "Visible Post" in body
        assert "Hidden Draft" not in body


def test_show_article_renders_sanitized_html(client):
    make(_gw(), title="Hello, World!", markdown="**bold** <script>alert(1)</script>")
    resp = client.get("/articles/hello-world")
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "<strong>bold</strong>" in body
    assert "alert(1)" not in body


def test_drafts_hidden_from_visitors(client, admin_client):
    make(_gw(), title="Secret", published=False)
    assert admin_client.get("/articles/secret").status_code == 200
    with client.session_transaction() as s:
        s.clear()
    assert client.get("/articles/secret").status_code == 404


def test_unknown_slug_is_404(client):
    assert client.get("/articles/does-not-exist").status_code == 404


def test_operator_pages_require_login(client):
    for path in ("/admin/articles/new", "/admin", "/articles/1/edit"):
        resp = client.get(path)
        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/login")
    resp = client.post("/articles", data={"title": "x", "markdown": "y"})
    assert resp.status_code == 302
    assert _gw().list().value == []


def test_login(client):
    resp = client.post("/login", data={"username": "admin", "password": "wrong"})
    assert resp.status_code == 401
    resp = client.post("/login", data={"username": "admin", "password": "s3cret"})
    assert resp.status_code == 302
    with client.session_transaction() as s:
        assert s["is_admin"] is True
    client.post("/logout")
    with client.session_transaction() as s:
        assert "is_admin" not in s


def test_login_disabled_without_password(app, client):
    app.config["ADMIN_PASSWORD"] = ""
    resp = client.post("/login", data={"username": "admin", "password": ""})
    assert resp.status_code == 401


def test_create_through_form(admin_client):
    resp = admin_client.post("/articles", data={
        "title": "Hello, World!",
        "markdown": "first line\nsecond line",
        "tags": "Ansible, Linux",
        "published": "on",
    })
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/articles/hello-world")
    a = _gw().get_by_slug("hello-world").value
    assert a.tags == ["Ansible", "Linux"]
    assert a.published is True
    assert "<br>" in a.sanitized_html


def test_duplicate_through_form(admin_client):
    make(_gw(), title="Hello, World!")
    resp = admin_client.post("/articles", data={"title": "Hello World", "markdown": "again"})
    assert resp.status_code == 409
    assert "already exists" in resp.get_data(as_text=True)


def test_missing_markdown_through_form(admin_client):
    resp = admin_client.post("/articles", data={"title": "No body", "markdown": ""})
    assert resp.status_code == 400
    assert "markdown is required" in resp.get_data(as_text=True)


def test_edit_form_unpublishes(admin_client):
    a = make(_gw(), title="Going Away", markdown="text")
    assert admin_client.get(f"/articles/{a.id}/edit").status_code == 200
    resp = admin_client.post(f"/articles/{a.id}/edit", data={"title": "Going Away", "markdown": "text"})
    assert resp.status_code == 302
    db.session.expire_all()
    assert _gw().get(a.id).value.published is False


def test_edit_and_delete_missing_article(admin_client):
    assert admin_client.get("/articles/999/edit").status_code == 404
    assert admin_client.post("/articles/999/delete").status_code == 404


def test_delete_through_form(admin_client):
    a = make(_gw(), title="Doomed")
    resp = admin_client.post(f"/articles/{a.id}/delete")
    assert resp.status_code == 302
    assert _gw().get_by_slug("doomed").ok is False


def test_admin_lists_drafts(admin_client):
    make(_gw(), title="Draft One", published=False)
    body = admin_client.get("/admin").get_data(as_text=True)
    assert "Draft One" in body
    assert "draft" in body


def test_contact_requires_fields(client):
    assert client.post("/contact", data={"name": "A"}).status_code == 400


def test_contact_reports_relay_failure(client):
    # SMTP is not configured in tests
    resp = client.post("/contact", data={"name": "A", "email": "a@example.com", "message": "hi"})
    assert resp.status_code == 502
    assert "Error sending message" in resp.get_data(as_text=True)


def test_contact_success(client, monkeypatch):
    sent = []
    monkeypatch.setattr(main, "send_contact_message", lambda *a: sent.append(a) or True)
    resp = client.post("/contact", data={"name": "A", "email": "a@example.com", "message": "hi"})
    assert resp.status_code == 302
    assert sent == [("A", "a@example.com", "hi")]


def test_article_titled_new_is_readable(client, admin_client):
    a = make(_gw(), title="New", markdown="fresh post")
    assert a.slug == "new"
    assert "fresh post" in admin_client.get("/articles/new").get_data(as_text=True)
    with client.session_transaction() as s:
        s.clear()
    resp = client.get("/articles/new")
    assert resp.status_code == 200
    assert "fresh post" in resp.get_data(as_text=True)


def test_editor_form_lives_under_admin(admin_client):
    resp = admin_client.get("/admin/articles/new")
    assert resp.status_code == 200
    assert 'name="markdown"' in resp.get_data(as_text=True)


def test_contact_rejects_header_line_breaks(app, client, monkeypatch):
    app.config.update(SMTP_HOST="smtp.example.com", CONTACT_TO="me@example.com")
    calls = []
    monkeypatch.setattr(main, "send_contact_message", lambda *a: calls.append(a) or True)
    for data in (
        {"name": "Ann\r\nBcc: x@evil.example", "email": "a@example.com", "message": "hi"},
        {"name": "Ann", "email": "a@example.com\nBcc: x@evil.example", "message": "hi"},
    ):
        resp = client.post("/contact", data=data)
        assert resp.status_code == 400
        assert "single line" in resp.get_data(as_text=True)
    assert calls == []
