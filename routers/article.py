from fastapi import APIRouter, Depends, File, UploadFile, Form, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from models import User
from schemas.article import ArticleResponse, ArticleFeedResponse, ShareResponse
from schemas.comment import CommentCreate, CommentResponse
from schemas.social import LikeStatus, BookmarkStatus
from database import get_db
from utils.auth import get_current_user, get_optional_user
from storage.base import BaseStorage
from dependencies import get_storage_manager
from services import article as article_service
from services import comment as comment_service
from services import social as social_service

router = APIRouter(prefix="/articles", tags=["articles"])


# ---------------------- artigos ----------------------
@router.get("", response_model=ArticleFeedResponse)
def get_feed(
    db: Session = Depends(get_db),
    page: int = Query(0, ge=0),
    page_size: int = Query(article_service.FEED_PAGE_SIZE, ge=1, le=50),
    q: Optional[str] = None,
    category: Optional[str] = None,
):
    return article_service.get_feed(db, page, page_size, q, category)


@router.post("", response_model=ArticleResponse, status_code=201)
def create_article(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: BaseStorage = Depends(get_storage_manager),
    article_data: str = Form(...),
    image: Optional[UploadFile] = File(None),
):
    return article_service.create_article(db, current_user, storage, article_data, image)


@router.get("/{article_id}", response_model=ArticleResponse)
def get_article(article_id: str, db: Session = Depends(get_db)):
    return article_service.get_article(article_id, db)


@router.patch("/{article_id}", response_model=ArticleResponse)
def update_article(
    article_id: str,
    article_update: str = Form(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: BaseStorage = Depends(get_storage_manager),
    image: Optional[UploadFile] = File(None),
):
    return article_service.update_article(article_id, article_update, db, current_user, storage, image)


@router.delete("/{article_id}")
def delete_article(article_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return article_service.delete_article(article_id, db, current_user)


@router.get("/{article_id}/share", response_model=ShareResponse)
def get_share_links(article_id: str, db: Session = Depends(get_db)):
    return article_service.get_share_links(article_id, db)


# ---------------------- curtidas e favoritos ----------------------
@router.get("/{article_id}/like", response_model=LikeStatus)
def get_like_status(article_id: str, db: Session = Depends(get_db), viewer: Optional[User] = Depends(get_optional_user)):
    return social_service.get_like_status(article_id, db, viewer)


@router.post("/{article_id}/like", response_model=LikeStatus)
def toggle_like(article_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return social_service.toggle_like(article_id, db, current_user)


@router.get("/{article_id}/bookmark", response_model=BookmarkStatus)
def get_bookmark_status(article_id: str, db: Session = Depends(get_db), viewer: Optional[User] = Depends(get_optional_user)):
    return social_service.get_bookmark_status(article_id, db, viewer)


@router.post("/{article_id}/bookmark", response_model=BookmarkStatus)
def toggle_bookmark(article_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return social_service.toggle_bookmark(article_id, db, current_user)


# ---------------------- comentários ----------------------
@router.get("/{article_id}/comments", response_model=List[CommentResponse])
def get_comments(article_id: str, db: Session = Depends(get_db), viewer: Optional[User] = Depends(get_optional_user)):
    return comment_service.get_comments(article_id, db, viewer)


@router.post("/{article_id}/comments", response_model=CommentResponse, status_code=201)
def create_comment(
    article_id: str,
    comment: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return comment_service.create_comment(article_id, comment, db, current_user)
