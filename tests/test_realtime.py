import asyncio

import pytest
from starlette.websockets import WebSocketDisconnect

from utils.realtime import RealtimeHub, comments_channel


# ---------------------- hub ----------------------
def test_publish_reaches_subscriber():
    hub = RealtimeHub()

    async def scenario():
        subscription = hub.subscribe("comments:a")
        delivered = hub.publish("comments:a", {"n": 1})
        hub.publish("comments:b", {"n": 2})
        return delivered, await asyncio.wait_for(subscription.get(), timeout=1)

    delivered, payload = asyncio.run(scenario())
    assert delivered == 1
    assert payload == {"n": 1}


def test_publish_from_another_thread():
    hub = RealtimeHub()

    async def scenario():
        subscription = hub.subscribe("notifications:u")
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, hub.publish, "notifications:u", {"n": 1})
        return await asyncio.wait_for(subscription.get(), timeout=1)

    assert asyncio.run(scenario()) == {"n": 1}


def test_unsubscribe_stops_delivery():
    hub = RealtimeHub()

    async def scenario():
        subscription = hub.subscribe("auth:u")
        hub.unsubscribe(subscription)
        return hub.publish("auth:u", {"event": "SIGNED_OUT"})

    assert asyncio.run(scenario()) == 0
    assert hub.subscriber_count("auth:u") == 0


def test_subscriber_on_closed_loop_is_dropped():
    hub = RealtimeHub()

    async def scenario():
        hub.subscribe("comments:x")

    asyncio.run(scenario())

    assert hub.publish("comments:x", {"n": 1}) == 0
    assert hub.subscriber_count("comments:x") == 0


# ---------------------- websockets ----------------------
def test_comment_feed_skips_viewer_own_comments(client, article, author, reader):
    path = f"/realtime/articles/{article['id']}/comments?token={author.token}"

    with client.websocket_connect(path) as websocket:
        client.post(f"/articles/{article['id']}/comments", json={"content": "Meu"}, headers=author.headers)
        client.post(f"/articles/{article['id']}/comments", json={"content": "Do leitor"}, headers=reader.headers)

        message = websocket.receive_json()

    assert message["event"] == "INSERT"
    assert message["table"] == "comments"
    assert message["record"]["content"] == "Do leitor"
    assert message["record"]["author"]["username"] == "leitor"


def test_comment_feed_anonymous_gets_everything(client, article, author):
    from utils.realtime import hub

    with client.websocket_connect(f"/realtime/articles/{article['id']}/comments") as websocket:
        assert hub.subscriber_count(comments_channel(article["id"])) == 1
        client.post(f"/articles/{article['id']}/comments", json={"content": "Olá"}, headers=author.headers)
        assert websocket.receive_json()["record"]["content"] == "Olá"


def test_notification_feed(client, article, author, reader):
    with client.websocket_connect(f"/realtime/notifications?token={author.token}") as websocket:
        client.post(f"/articles/{article['id']}/like", headers=reader.headers)
        message = websocket.receive_json()

    assert message["table"] == "notifications"
    assert message["record"]["type"] == "like"
    assert message["record"]["actor"]["username"] == "leitor"
    assert message["record"]["article"]["id"] == article["id"]


def test_notification_feed_requires_token(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/realtime/notifications"):
            pass


def test_auth_feed_reports_sign_out(client, reader):
    with client.websocket_connect(f"/realtime/auth?token={reader.token}") as websocket:
        client.post("/auth/signout", headers=reader.headers)
        message = websocket.receive_json()

    assert message == {"event": "SIGNED_OUT", "user_id": reader.id}


def test_auth_feed_reports_profile_update(client, reader):
    with client.websocket_connect(f"/realtime/auth?token={reader.token}") as websocket:
        client.patch("/profiles/me", data={"profile_data": '{"bio": "oi"}'}, headers=reader.headers)
        assert websocket.receive_json()["event"] == "USER_UPDATED"


def test_rolled_back_notification_is_not_published(db, author, reader):
    from models import Notification
    from utils.realtime import hub, notifications_channel

    async def scenario():
        subscription = hub.subscribe(notifications_channel(author.id))
        try:
            db.add(Notification(user_id=author.id, actor_id=reader.id, type="follow"))
            db.flush()
            db.rollback()
            db.add(Notification(user_id=author.id, actor_id=reader.id, type="like"))
            db.commit()
            return await asyncio.wait_for(subscription.get(), timeout=1)
        finally:
            hub.unsubscribe(subscription)

    assert asyncio.run(scenario())["record"]["type"] == "like"
