from pydantic import BaseModel
from typing import Optional, List, Literal
from datetime import datetime

from schemas.base import convert_datetime_to_brazil_time

NotificationType = Literal["follow", "like", "comment", "comment_like", "comment_reply", "comment_mention"]


class NotificationActor(BaseModel):
    id: str
    username: str
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True


class NotificationArticle(BaseModel):
    id: str
    title: str

    class Config:
        from_attributes = True


class NotificationResponse(BaseModel):
    id: str
    created_at: datetime
    user_id: str
    actor_id: str
    article_id: Optional[str] = None
    comment_id: Optional[str] = None
    type: NotificationType
    is_read: bool
    actor: Optional[NotificationActor] = None
    article: Optional[NotificationArticle] = None

    class Config:
        from_attributes = True
        json_encoders = {datetime: convert_datetime_to_brazil_time}


class NotificationListResponse(BaseModel):
    items: List[NotificationResponse] = []
    unread_count: int = 0


class UnreadCount(BaseModel):
    unread_count: int
