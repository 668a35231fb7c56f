from sqlalchemy import event, select
from sqlalchemy.orm import Session, object_session

from models.article import Article, Comment
from models.notification import Notification
from models.user import Profile, User
from utils.fcm import send_push_notification
from utils.realtime import hub, comments_channel, notifications_channel

PENDING_KEY = "realtime_pending"

PUSH_MESSAGES = {
    "follow": "{actor} começou a seguir você",
    "like": "{actor} curtiu seu artigo",
    "comment": "{actor} comentou no seu artigo",
    "comment_like": "{actor} curtiu seu comentário",
    "comment_reply": "{actor} respondeu ao seu comentário",
    "comment_mention": "{actor} mencionou você em um comentário",
}


def _brief_profile(connection, profile_id):
    row = connection.execute(
        select(Profile.id, Profile.username, Profile.avatar_url).where(Profile.id == profile_id)
    ).first()
    if row is None:
        return {"id": profile_id, "username": "Usuário", "avatar_url": None}
    return {"id": row.id, "username": row.username, "avatar_url": row.avatar_url}


def _queue(target, item):
    session = object_session(target)
    if session is not None:
        session.info.setdefault(PENDING_KEY, []).append(item)


@event.listens_for(Comment, "after_insert")
def after_insert_comment_listener(mapper, connection, target):
    """Queue the new comment for the article's change feed once the transaction commits."""
    payload = {
        "event": "INSERT",
        "table": "comments",
        "record": {
            "id": target.id,
            "content": target.content,
            "article_id": target.article_id,
            "user_id": target.user_id,
            "parent_id": target.parent_id,
            "mention_user_id": target.mention_user_id,
            "created_at": target.created_at.isoformat() if target.created_at else None,
            "author": _brief_profile(connection, target.user_id),
        },
    }
    _queue(target, ("publish", comments_channel(target.article_id), payload))


@event.listens_for(Notification, "after_insert")
def after_insert_notification_listener(mapper, connection, target):
    """Queue the notification for the recipient's feed and, when registered, a push."""
    actor = _brief_profile(connection, target.actor_id)
    article = None
    if target.article_id:
        row = connection.execute(
            select(Article.id, Article.title).where(Article.id == target.article_id)
        ).first()
        if row is not None:
            article = {"id": row.id, "title": row.title}

    payload = {
        "event": "INSERT",
        "table": "notifications",
        "record": {
            "id": target.id,
            "user_id": target.user_id,
            "actor_id": target.actor_id,
            "article_id": target.article_id,
            "comment_id": target.comment_id,
            "type": target.type,
            "is_read": bool(target.is_read),
            "created_at": target.created_at.isoformat() if target.created_at else None,
            "actor": actor,
            "article": article,
        },
    }
    _queue(target, ("publish", notifications_channel(target.user_id), payload))

    device_token = connection.execute(
        select(User.fcm_token).where(User.id == target.user_id)
    ).scalar()
    if device_token:
        body = PUSH_MESSAGES.get(target.type, "{actor} interagiu com você").format(actor=actor["username"])
        _queue(target, ("push", target.user_id, device_token, body))


@event.listens_for(Session, "after_commit")
def flush_realtime_events(session):
    pending = session.info.pop(PENDING_KEY, [])
    for item in pending:
        if item[0] == "publish":
            _, channel, payload = item
            hub.publish(channel, payload)
        elif item[0] == "push":
            _, user_id, device_token, body = item
            send_push_notification(user_id, device_token, "Outliers", body)


@event.listens_for(Session, "after_soft_rollback")
def discard_realtime_events(session, previous_transaction):
    session.info.pop(PENDING_KEY, None)
