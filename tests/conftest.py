import json
import os
import tempfile
from itertools import count
from types import SimpleNamespace

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("STORAGE_TYPE", "local")
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="outliers-uploads-")
os.environ.pop("FCM_CREDENTIALS_PATH", None)

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from dependencies import get_storage_manager
from main import app
from storage.local import LocalStorage

_USER_COUNTER = count(1)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture()
def storage(tmp_path):
    return LocalStorage(upload_dir=str(tmp_path), base_url="http://test")


@pytest.fixture()
def client(storage):
    app.dependency_overrides[get_storage_manager] = lambda: storage
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_storage_manager, None)


@pytest.fixture()
def db():
    """A short-lived session for arranging and asserting rows directly."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_user(client):
    def _make_user(username=None, password="segredo123"):
        n = next(_USER_COUNTER)
        payload = {"email": f"leitor{n}@outliers.com.br", "password": password}
        if username:
            payload["username"] = username
        response = client.post("/auth/signup", json=payload)
        assert response.status_code == 201, response.text
        data = response.json()
        return SimpleNamespace(
            id=data["user"]["id"],
            email=payload["email"],
            password=password,
            username=data["user"]["profile"]["username"],
            token=data["access_token"],
            headers=auth_headers(data["access_token"]),
        )

    return _make_user


@pytest.fixture()
def make_article(client):
    def _make_article(author, title="Como investir em 2024", content="<p>Conteúdo</p>", category="negocios"):
        response = client.post(
            "/articles",
            data={"article_data": json.dumps({"title": title, "content": content, "category": category})},
            files={"image": ("capa.png", PNG_BYTES, "image/png")},
            headers=author.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _make_article


@pytest.fixture()
def author(make_user):
    return make_user(username="autora")


@pytest.fixture()
def reader(make_user):
    return make_user(username="leitor")


@pytest.fixture()
def article(make_article, author):
    return make_article(author)
