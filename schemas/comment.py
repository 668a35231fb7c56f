from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from schemas.base import convert_datetime_to_brazil_time
from schemas.user import ProfileBrief


class CommentCreate(BaseModel):
    content: str
    parent_id: Optional[str] = None


class CommentResponse(BaseModel):
    id: str
    content: str
    article_id: str
    user_id: str
    parent_id: Optional[str] = None
    mention_user_id: Optional[str] = None
    created_at: datetime
    author: Optional[ProfileBrief] = None
    reply_to_username: Optional[str] = None
    like_count: int = 0
    liked_by_viewer: bool = False

    class Config:
        from_attributes = True
        json_encoders = {datetime: convert_datetime_to_brazil_time}
