from fastapi import APIRouter, Depends, File, UploadFile, Form
from sqlalchemy.orm import Session
from typing import List, Optional

from models import User
from schemas.user import ProfileResponse, PublicProfileResponse, ProfileBrief, FCMTokenUpdate
from schemas.article import ArticleResponse
from schemas.social import FollowStatus
from database import get_db
from utils.auth import get_current_user, get_optional_user
from storage.base import BaseStorage
from dependencies import get_storage_manager
from services import profile as profile_service
from services import social as social_service

router = APIRouter(prefix="/profiles", tags=["profiles"])


# ---------------------- meu perfil ----------------------
@router.get("/me", response_model=ProfileResponse)
def get_my_profile(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return profile_service.get_my_profile(db, current_user)


@router.patch("/me", response_model=ProfileResponse)
def update_my_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: BaseStorage = Depends(get_storage_manager),
    profile_data: str = Form("{}"),
    avatar: Optional[UploadFile] = File(None),
    banner: Optional[UploadFile] = File(None),
):
    return profile_service.update_my_profile(db, current_user, storage, profile_data, avatar, banner)


@router.get("/me/bookmarks", response_model=List[ArticleResponse])
def get_saved_articles(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return profile_service.get_saved_articles(db, current_user)


@router.patch("/me/fcm-token", response_model=ProfileResponse)
def update_fcm_token(
    fcm_token_update: FCMTokenUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return profile_service.update_fcm_token(fcm_token_update, db, current_user)


# ---------------------- perfil público ----------------------
@router.get("/{user_id}", response_model=PublicProfileResponse)
def get_public_profile(user_id: str, db: Session = Depends(get_db)):
    return profile_service.get_public_profile(user_id, db)


@router.get("/{user_id}/articles", response_model=List[ArticleResponse])
def get_user_articles(user_id: str, db: Session = Depends(get_db)):
    return profile_service.get_user_articles(user_id, db)


@router.get("/{user_id}/followers", response_model=List[ProfileBrief])
def get_followers(user_id: str, db: Session = Depends(get_db)):
    return profile_service.get_followers(user_id, db)


@router.get("/{user_id}/following", response_model=List[ProfileBrief])
def get_following(user_id: str, db: Session = Depends(get_db)):
    return profile_service.get_following(user_id, db)


@router.get("/{user_id}/follow", response_model=FollowStatus)
def get_follow_status(user_id: str, db: Session = Depends(get_db), viewer: Optional[User] = Depends(get_optional_user)):
    return social_service.get_follow_status(user_id, db, viewer)


@router.post("/{user_id}/follow", response_model=FollowStatus)
def toggle_follow(user_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return social_service.toggle_follow(user_id, db, current_user)
