from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from models import User
from schemas.notification import NotificationListResponse, UnreadCount
from database import get_db
from utils.auth import get_current_user
from services import notification as notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
def list_notifications(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return notification_service.list_notifications(db, current_user)


@router.patch("/{notification_id}/read", response_model=UnreadCount)
def mark_as_read(notification_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return notification_service.mark_as_read(notification_id, db, current_user)


@router.post("/read-all", response_model=UnreadCount)
def mark_all_as_read(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return notification_service.mark_all_as_read(db, current_user)
