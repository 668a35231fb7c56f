from pydantic import BaseModel
from typing import Optional, List

from schemas.user import ProfileBrief


class ArticleSearchItem(BaseModel):
    id: str
    title: str
    category: str
    image_url: Optional[str] = None
    author: Optional[ProfileBrief] = None

    class Config:
        from_attributes = True


class AuthorSearchItem(BaseModel):
    id: str
    username: str
    avatar_url: Optional[str] = None
    sector: Optional[str] = None

    class Config:
        from_attributes = True


class SearchResponse(BaseModel):
    articles: List[ArticleSearchItem] = []
    authors: List[AuthorSearchItem] = []
