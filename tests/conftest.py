from datetime import datetime, timedelta, timezone

import pytest

from blog import create_app, db
from blog.gateway import ArticleGateway


class StepClock:
    """Each call is one minute later than the previous one."""

    def __init__(self, start=None):
        self.now = start or datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SQLALCHEMY_ENGINE_OPTIONS": {},
        "SECRET_KEY": "test-secret",
        "ADMIN_USERNAME": "admin",
        "ADMIN_PASSWORD": "s3cret",
        "SMTP_HOST": "",
        "CONTACT_TO": "",
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def gateway(app):
    return ArticleGateway(db.session, clock=StepClock(), sleep=lambda s: None)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    with client.session_transaction() as s:
        s["is_admin"] = True
    return client


def make(gateway, title="Hello, World!", markdown="Some *text* here.", **extra):
    res = gateway.create({"title": title, "markdown": markdown, **extra})
    assert res.ok, res.error
    return res.value
