import pytest

from models import Notification
from services.notification import get_notifications_with_actors, notify


@pytest.fixture()
def inbox(client, article, author, make_user):
    """Three unread notifications for the article author from three readers."""
    for _ in range(3):
        fan = make_user()
        client.post(f"/articles/{article['id']}/like", headers=fan.headers)
    return client.get("/notifications", headers=author.headers).json()


def test_list_notifications_with_actor_and_article(inbox, article):
    assert inbox["unread_count"] == 3
    assert len(inbox["items"]) == 3
    item = inbox["items"][0]
    assert item["type"] == "like"
    assert item["is_read"] is False
    assert item["actor"]["username"].startswith("leitor")
    assert item["article"] == {"id": article["id"], "title": article["title"]}


def test_mark_as_read_decrements_by_one(client, inbox, author):
    target = inbox["items"][0]["id"]

    response = client.patch(f"/notifications/{target}/read", headers=author.headers)
    assert response.status_code == 200
    assert response.json() == {"unread_count": 2}

    # Marcar de novo não muda nada
    again = client.patch(f"/notifications/{target}/read", headers=author.headers)
    assert again.json() == {"unread_count": 2}

    items = client.get("/notifications", headers=author.headers).json()["items"]
    assert [item["is_read"] for item in items].count(True) == 1


def test_mark_as_read_only_own_notifications(client, inbox, reader):
    target = inbox["items"][0]["id"]

    response = client.patch(f"/notifications/{target}/read", headers=reader.headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Notificação não encontrada."


def test_mark_all_as_read(client, db, inbox, author):
    response = client.post("/notifications/read-all", headers=author.headers)

    assert response.json() == {"unread_count": 0}
    db.expire_all()
    assert db.query(Notification).filter_by(user_id=author.id, is_read=False).count() == 0
    assert client.get("/notifications", headers=author.headers).json()["unread_count"] == 0


def test_notifications_require_login(client):
    assert client.get("/notifications").status_code == 401
    assert client.post("/notifications/read-all").status_code == 401


def test_notify_skips_self_and_unknown_types(db, author):
    assert notify(db, author.id, author.id, "follow") is None
    assert notify(db, None, author.id, "follow") is None
    with pytest.raises(ValueError):
        notify(db, "someone-else", author.id, "poke")


def test_get_notifications_with_actors_handles_missing_actor(db, author):
    db.add(Notification(user_id=author.id, actor_id="perfil-apagado", type="follow"))
    db.commit()

    items = get_notifications_with_actors(db, author.id)
    assert len(items) == 1
    assert items[0].actor is None
    assert items[0].article is None
