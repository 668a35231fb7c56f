import json
from datetime import datetime, timedelta, timezone

import pytest

from dependencies import get_storage_manager
from main import app
from models import Article, Bookmark, Profile
from storage.base import StorageError
from storage.local import LocalStorage

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class BrokenUploadStorage(LocalStorage):
    def save(self, file, filename, bucket, folder=None):
        raise StorageError("bucket indisponível")


def _patch_profile(client, user, data=None, files=None):
    return client.patch(
        "/profiles/me",
        data={"profile_data": json.dumps(data or {})},
        files=files,
        headers=user.headers,
    )


# ---------------------- meu perfil ----------------------
def test_get_my_profile(client, author):
    data = client.get("/profiles/me", headers=author.headers).json()
    assert data["id"] == author.id
    assert data["username"] == "autora"
    assert data["is_verified"] is False


def test_update_profile_fields(client, author):
    response = _patch_profile(client, author, {"bio": "Economista", "sector": "Finanças", "instagram_url": "https://instagram.com/autora"})

    assert response.status_code == 200
    data = response.json()
    assert data["bio"] == "Economista"
    assert data["sector"] == "Finanças"
    assert data["instagram_url"] == "https://instagram.com/autora"
    assert data["username"] == "autora"


def test_username_taken_returns_conflict_and_keeps_old(client, db, author, reader):
    response = _patch_profile(client, reader, {"username": "autora", "bio": "nova bio"})

    assert response.status_code == 409
    assert response.json()["detail"] == "Este nome de usuário já está em uso."
    db.expire_all()
    profile = db.query(Profile).filter_by(id=reader.id).one()
    assert profile.username == "leitor"
    assert profile.bio is None


def test_username_too_short(client, author):
    assert _patch_profile(client, author, {"username": "a"}).status_code == 422
    assert _patch_profile(client, author, {"username": " b "}).status_code == 422


def test_keeping_own_username_is_allowed(client, author):
    assert _patch_profile(client, author, {"username": "autora"}).status_code == 200


def test_verified_badge_follows_username(client, author):
    verified = _patch_profile(client, author, {"username": "Outliers Ofc"}).json()
    assert verified["is_verified"] is True

    renamed = _patch_profile(client, author, {"username": "Outliers"}).json()
    assert renamed["is_verified"] is False


def test_malformed_profile_json(client, author):
    response = client.patch("/profiles/me", data={"profile_data": "{"}, headers=author.headers)
    assert response.status_code == 400


@pytest.mark.parametrize("payload", ["null", "[]", "\"autora\""])
def test_profile_json_that_is_not_an_object(client, author, payload):
    response = client.patch("/profiles/me", data={"profile_data": payload}, headers=author.headers)
    assert response.status_code == 422


def test_null_username_is_rejected_and_kept(client, db, author):
    response = _patch_profile(client, author, {"username": None, "bio": "nova bio"})

    assert response.status_code == 422
    db.expire_all()
    profile = db.query(Profile).filter_by(id=author.id).one()
    assert profile.username == "autora"
    assert profile.bio is None


def test_avatar_and_banner_upload(client, author, storage):
    response = _patch_profile(
        client,
        author,
        files={
            "avatar": ("eu.png", PNG_BYTES, "image/png"),
            "banner": ("capa.png", PNG_BYTES, "image/png"),
        },
    )

    data = response.json()
    assert data["avatar_url"].startswith(f"http://test/uploads/user-avatars/avatars/{author.id}-")
    assert data["banner_url"].startswith(f"http://test/uploads/user-banners/banners/{author.id}-")
    assert {"user-avatars", "user-banners"} <= set(storage.list_buckets())


def test_failed_upload_keeps_previous_url(client, author, tmp_path):
    first = _patch_profile(client, author, files={"avatar": ("eu.png", PNG_BYTES, "image/png")}).json()

    app.dependency_overrides[get_storage_manager] = lambda: BrokenUploadStorage(upload_dir=str(tmp_path), base_url="http://test")
    response = _patch_profile(client, author, {"bio": "atualizada"}, files={"avatar": ("nova.png", PNG_BYTES, "image/png")})

    assert response.status_code == 200
    assert response.json()["avatar_url"] == first["avatar_url"]
    assert response.json()["bio"] == "atualizada"


def test_profile_requires_login(client):
    assert client.get("/profiles/me").status_code == 401


# ---------------------- perfil público ----------------------
def test_public_profile_counts(client, make_article, author, reader, make_user):
    make_article(author)
    make_article(author, title="Segundo")
    client.post(f"/profiles/{author.id}/follow", headers=reader.headers)
    client.post(f"/profiles/{reader.id}/follow", headers=author.headers)
    client.post(f"/profiles/{author.id}/follow", headers=make_user().headers)

    data = client.get(f"/profiles/{author.id}").json()
    assert data["article_count"] == 2
    assert data["follower_count"] == 2
    assert data["following_count"] == 1


def test_public_profile_not_found(client):
    response = client.get("/profiles/nao-existe")

    assert response.status_code == 404
    assert response.json()["detail"] == "Usuário não encontrado."


def test_followers_and_following(client, author, reader):
    client.post(f"/profiles/{author.id}/follow", headers=reader.headers)

    followers = client.get(f"/profiles/{author.id}/followers").json()
    assert followers == [{"id": reader.id, "username": "leitor", "avatar_url": None}]
    following = client.get(f"/profiles/{reader.id}/following").json()
    assert [p["id"] for p in following] == [author.id]
    assert client.get(f"/profiles/{author.id}/following").json() == []


def test_user_articles(client, make_article, author, reader):
    make_article(author, title="Dela")
    make_article(reader, title="Dele")

    titles = [a["title"] for a in client.get(f"/profiles/{author.id}/articles").json()]
    assert titles == ["Dela"]


# ---------------------- salvos ----------------------
def test_saved_articles_newest_bookmark_first(client, db, make_article, author, reader):
    older = make_article(author, title="Antigo")
    newer = make_article(author, title="Novo")
    gone = make_article(author, title="Some")
    for item in (older, newer, gone):
        client.post(f"/articles/{item['id']}/bookmark", headers=reader.headers)

    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    db.query(Bookmark).filter_by(article_id=older["id"]).update({"created_at": base + timedelta(days=2)})
    db.query(Bookmark).filter_by(article_id=newer["id"]).update({"created_at": base})
    # Artigo removido sem passar pela cascata: o favorito fica órfão
    db.query(Article).filter_by(id=gone["id"]).delete()
    db.commit()

    saved = client.get("/profiles/me/bookmarks", headers=reader.headers).json()
    assert [a["title"] for a in saved] == ["Antigo", "Novo"]
    assert saved[0]["author"]["username"] == "autora"


# ---------------------- token de push ----------------------
def test_fcm_token_store_and_clear(client, db, author):
    from models import User

    assert client.patch("/profiles/me/fcm-token", json={"fcm_token": "device-1"}, headers=author.headers).status_code == 200
    db.expire_all()
    user = db.query(User).filter_by(id=author.id).one()
    assert user.fcm_token == "device-1"
    assert user.fcm_token_updated_at is not None

    client.patch("/profiles/me/fcm-token", json={"fcm_token": None}, headers=author.headers)
    db.expire_all()
    assert db.query(User).filter_by(id=author.id).one().fcm_token is None
