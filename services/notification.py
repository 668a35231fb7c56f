from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from typing import List, Optional
import logging
from starlette import status

from models.notification import Notification, NOTIFICATION_TYPES
from models.user import User
from schemas.notification import (
    NotificationActor, NotificationArticle, NotificationResponse, NotificationListResponse, UnreadCount
)

logger = logging.getLogger(__name__)


def notify(
    db: Session,
    recipient_id: Optional[str],
    actor_id: str,
    type: str,
    article_id: Optional[str] = None,
    comment_id: Optional[str] = None,
) -> Optional[Notification]:
    """
    Inserts a notification for `recipient_id` on behalf of `actor_id`.

    Nothing is written when the actor is the recipient. The insert commits on
    its own and a failure is logged and rolled back without raising, so the
    action that triggered it stays in place.
    """
    if not recipient_id or recipient_id == actor_id:
        return None
    if type not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {type}")

    notification = Notification(
        user_id=recipient_id,
        actor_id=actor_id,
        article_id=article_id,
        comment_id=comment_id,
        type=type,
        is_read=False,
    )
    try:
        db.add(notification)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Erro ao criar notificação %s para %s: %s", type, recipient_id, e)
        return None
    return notification


def get_notifications_with_actors(db: Session, user_id: str) -> List[NotificationResponse]:
    try:
        notifications = (
            db.query(Notification)
            .options(selectinload(Notification.actor), selectinload(Notification.article))
            .filter(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.error("Erro ao buscar notificações: %s", e)
        return []

    response = []
    for notification in notifications:
        response.append(
            NotificationResponse(
                id=notification.id,
                created_at=notification.created_at,
                user_id=notification.user_id,
                actor_id=notification.actor_id,
                article_id=notification.article_id,
                comment_id=notification.comment_id,
                type=notification.type,
                is_read=notification.is_read,
                actor=NotificationActor.model_validate(notification.actor) if notification.actor else None,
                article=NotificationArticle.model_validate(notification.article) if notification.article else None,
            )
        )
    return response


def count_unread(db: Session, user_id: str) -> int:
    return (
        db.query(func.count(Notification.id))
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .scalar()
        or 0
    )


def list_notifications(db: Session, current_user: User) -> NotificationListResponse:
    items = get_notifications_with_actors(db, current_user.id)
    return NotificationListResponse(
        items=items,
        unread_count=sum(1 for item in items if not item.is_read),
    )


def mark_as_read(notification_id: str, db: Session, current_user: User) -> UnreadCount:
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == current_user.id)
        .first()
    )
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notificação não encontrada.")

    # Só existe a transição não lida -> lida
    if not notification.is_read:
        notification.is_read = True
        db.commit()

    return UnreadCount(unread_count=count_unread(db, current_user.id))


def mark_all_as_read(db: Session, current_user: User) -> UnreadCount:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == current_user.id, Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    logger.debug("%s notificações marcadas como lidas para %s", updated, current_user.id)
    return UnreadCount(unread_count=0)
