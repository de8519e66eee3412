import pytest

import auth
from app import create_app
from models import db
from policy import make_principal


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SEARCH_REQUIRES_AUTH": False,
    })
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


def register(client, name, email, employer=False, password="secret123"):
    path = "/register/employer" if employer else "/register"
    return client.post(path, json={
        "name": name,
        "email": email,
        "password": password,
        "password_confirmation": password,
    })


def login(client, email, password="secret123"):
    return client.post("/login", json={"email": email, "password": password})


@pytest.fixture
def employer_client(app):
    client = app.test_client()
    register(client, "Acme HR", "hr@acme.com", employer=True)
    return client


@pytest.fixture
def other_employer_client(app):
    client = app.test_client()
    register(client, "Globex HR", "hr@globex.com", employer=True)
    return client


@pytest.fixture
def user_client(app):
    client = app.test_client()
    register(client, "Jane Doe", "jane@mail.com")
    return client


@pytest.fixture
def admin_client(app):
    with app.app_context():
        auth.create_user("Site Admin", "admin@board.com", "secret123", "admin")
    client = app.test_client()
    login(client, "admin@board.com")
    return client


@pytest.fixture
def make_user(app_ctx):
    def _make_user(name, email, role):
        user = auth.create_user(name, email, "secret123", role)
        return make_principal(user.id, user.role_names)
    return _make_user


JOB = {
    "title": "Python Developer",
    "description": "Build APIs",
    "location": "Casablanca",
    "company": "TechCorp",
}
