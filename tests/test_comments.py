from datetime import datetime, timedelta, timezone

from models import Comment, CommentLike, Notification
from utill.comment import extract_mention, resolve_mention


def _post_comment(client, article_id, user, content, parent_id=None):
    payload = {"content": content}
    if parent_id:
        payload["parent_id"] = parent_id
    return client.post(f"/articles/{article_id}/comments", json=payload, headers=user.headers)


def _notifications(db, **filters):
    db.expire_all()
    return db.query(Notification).filter_by(**filters).all()


# ---------------------- menções ----------------------
def test_extract_mention_takes_first_handle():
    assert extract_mention("oi @ana e @bruno") == "ana"
    assert extract_mention("sem menção") is None
    assert extract_mention("") is None


def test_resolve_mention_is_case_insensitive():
    known = {"Ana": "id-ana", "bruno": "id-bruno"}

    assert resolve_mention("valeu @ANA", known) == "id-ana"
    assert resolve_mention("@Bruno concordo", known) == "id-bruno"
    assert resolve_mention("@carla?", known) is None


def test_mention_resolves_against_article_author(client, db, article, author, reader):
    response = _post_comment(client, article["id"], reader, "Muito bom @AUTORA, parabéns")

    assert response.status_code == 201
    assert response.json()["mention_user_id"] == author.id
    types = sorted(n.type for n in _notifications(db, user_id=author.id))
    assert types == ["comment", "comment_mention"]


def test_mention_resolves_against_previous_commenters(client, db, article, author, reader, make_user):
    _post_comment(client, article["id"], reader, "Primeiro")
    third = make_user(username="terceiro")

    data = _post_comment(client, article["id"], third, "@Leitor você viu isso?").json()
    assert data["mention_user_id"] == reader.id
    assert [n.type for n in _notifications(db, user_id=reader.id)] == ["comment_mention"]


def test_unknown_mention_is_ignored(client, db, article, reader, make_user):
    outsider = make_user(username="ninguem")

    data = _post_comment(client, article["id"], reader, "@ninguem apareça").json()
    assert data["mention_user_id"] is None
    assert _notifications(db, user_id=outsider.id) == []


# ---------------------- respostas ----------------------
def test_reply_notifies_parent_author(client, db, article, author, reader, make_user):
    parent = _post_comment(client, article["id"], reader, "Discordo").json()
    replier = make_user(username="replicante")

    reply = _post_comment(client, article["id"], replier, "Por quê?", parent_id=parent["id"])

    assert reply.status_code == 201
    assert reply.json()["parent_id"] == parent["id"]
    assert reply.json()["reply_to_username"] == "leitor"
    reply_notifications = _notifications(db, user_id=reader.id, type="comment_reply")
    assert len(reply_notifications) == 1
    assert reply_notifications[0].comment_id == reply.json()["id"]


def test_author_commenting_own_article_is_not_notified(client, db, article, author):
    _post_comment(client, article["id"], author, "Obrigada a todos @autora")
    assert _notifications(db) == []


def test_reply_to_comment_of_another_article(client, make_article, article, author, reader):
    other = make_article(author, title="Outro")
    parent = _post_comment(client, other["id"], reader, "Lá").json()

    response = _post_comment(client, article["id"], reader, "Aqui", parent_id=parent["id"])
    assert response.status_code == 400


def test_reply_to_missing_comment(client, article, reader):
    response = _post_comment(client, article["id"], reader, "Oi", parent_id="nao-existe")
    assert response.status_code == 404


def test_blank_comment_is_rejected(client, db, article, reader):
    response = _post_comment(client, article["id"], reader, "   ")

    assert response.status_code == 422
    db.expire_all()
    assert db.query(Comment).count() == 0


def test_comment_requires_login(client, article):
    response = client.post(f"/articles/{article['id']}/comments", json={"content": "Oi"})
    assert response.status_code == 401


def test_comment_on_missing_article(client, reader):
    assert _post_comment(client, "nao-existe", reader, "Oi").status_code == 404


# ---------------------- listagem ----------------------
def test_list_comments_newest_first_with_thread_data(client, db, article, author, reader):
    first = _post_comment(client, article["id"], reader, "Primeiro").json()
    second = _post_comment(client, article["id"], author, "Resposta", parent_id=first["id"]).json()

    base = datetime(2024, 5, 1, tzinfo=timezone.utc)
    db.query(Comment).filter_by(id=first["id"]).update({"created_at": base})
    db.query(Comment).filter_by(id=second["id"]).update({"created_at": base + timedelta(minutes=5)})
    db.commit()

    client.post(f"/comments/{first['id']}/like", headers=author.headers)

    comments = client.get(f"/articles/{article['id']}/comments", headers=author.headers).json()
    assert [c["id"] for c in comments] == [second["id"], first["id"]]
    assert comments[0]["author"]["username"] == "autora"
    assert comments[0]["reply_to_username"] == "leitor"
    assert comments[1]["reply_to_username"] is None
    assert comments[1]["like_count"] == 1
    assert comments[1]["liked_by_viewer"] is True
    assert comments[0]["liked_by_viewer"] is False

    anonymous = client.get(f"/articles/{article['id']}/comments").json()
    assert all(c["liked_by_viewer"] is False for c in anonymous)


def test_list_comments_empty(client, article):
    assert client.get(f"/articles/{article['id']}/comments").json() == []


# ---------------------- exclusão ----------------------
def test_delete_comment_removes_likes_and_notifications(client, db, article, author, reader):
    comment = _post_comment(client, article["id"], reader, "Vou apagar @autora").json()
    client.post(f"/comments/{comment['id']}/like", headers=author.headers)
    assert len(_notifications(db, comment_id=comment["id"])) == 3

    response = client.delete(f"/comments/{comment['id']}", headers=reader.headers)

    assert response.status_code == 200
    db.expire_all()
    assert db.query(Comment).filter_by(id=comment["id"]).count() == 0
    assert db.query(CommentLike).filter_by(comment_id=comment["id"]).count() == 0
    assert _notifications(db, comment_id=comment["id"]) == []


def test_delete_comment_only_by_owner(client, article, author, reader):
    comment = _post_comment(client, article["id"], reader, "Meu").json()

    assert client.delete(f"/comments/{comment['id']}", headers=author.headers).status_code == 403
    assert client.delete("/comments/nao-existe", headers=reader.headers).status_code == 404
