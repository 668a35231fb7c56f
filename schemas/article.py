from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from schemas.base import convert_datetime_to_brazil_time
from schemas.user import ProfileBrief


class ArticleCreate(BaseModel):
    title: str
    content: str
    category: str = "negocios"


class ArticleUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None


class ArticleResponse(BaseModel):
    id: str
    title: str
    content: str
    category: str
    image_url: Optional[str] = None
    author_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    author: Optional[ProfileBrief] = None
    like_count: int = 0
    comment_count: int = 0

    class Config:
        from_attributes = True
        json_encoders = {datetime: convert_datetime_to_brazil_time}


class ArticleFeedResponse(BaseModel):
    items: List[ArticleResponse] = []
    page: int
    page_size: int
    has_more: bool


class ShareOption(BaseModel):
    name: str
    url: str


class ShareResponse(BaseModel):
    title: str
    url: str
    options: List[ShareOption] = Field(default_factory=list)
