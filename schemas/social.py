from pydantic import BaseModel
from typing import Optional


class LikeStatus(BaseModel):
    is_liked: bool
    like_id: Optional[str] = None
    like_count: int = 0


class BookmarkStatus(BaseModel):
    is_bookmarked: bool
    bookmark_id: Optional[str] = None


class FollowStatus(BaseModel):
    is_following: bool
    follow_id: Optional[str] = None
    follower_count: int = 0
