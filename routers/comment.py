from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from models import User
from schemas.social import LikeStatus
from database import get_db
from utils.auth import get_current_user, get_optional_user
from services import comment as comment_service
from services import social as social_service

router = APIRouter(prefix="/comments", tags=["comments"])


@router.delete("/{comment_id}")
def delete_comment(comment_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return comment_service.delete_comment(comment_id, db, current_user)


@router.get("/{comment_id}/like", response_model=LikeStatus)
def get_comment_like_status(comment_id: str, db: Session = Depends(get_db), viewer: Optional[User] = Depends(get_optional_user)):
    return social_service.get_comment_like_status(comment_id, db, viewer)


@router.post("/{comment_id}/like", response_model=LikeStatus)
def toggle_comment_like(comment_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return social_service.toggle_comment_like(comment_id, db, current_user)
