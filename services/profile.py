from fastapi import HTTPException, UploadFile
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime, timezone
import logging
import uuid
from pydantic import ValidationError
from starlette import status

from models.user import User, Profile
from models.article import Article
from models.social import Bookmark, Follow
from schemas.user import ProfileUpdate, ProfileResponse, PublicProfileResponse, ProfileBrief, FCMTokenUpdate
from schemas.article import ArticleResponse
from services.article import serialize_articles
from services.auth import publish_auth_event
from storage.base import BaseStorage, StorageError

logger = logging.getLogger(__name__)

VERIFIED_USERNAME = "Outliers Ofc"


def get_profile_or_404(user_id: str, db: Session) -> Profile:
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado.")
    return profile


def get_my_profile(db: Session, current_user: User) -> Profile:
    return get_profile_or_404(current_user.id, db)


def get_public_profile(user_id: str, db: Session) -> PublicProfileResponse:
    profile = get_profile_or_404(user_id, db)
    response = PublicProfileResponse.model_validate(profile)
    response.article_count = db.query(func.count(Article.id)).filter(Article.author_id == user_id).scalar() or 0
    response.follower_count = db.query(func.count(Follow.id)).filter(Follow.followed_id == user_id).scalar() or 0
    response.following_count = db.query(func.count(Follow.id)).filter(Follow.follower_id == user_id).scalar() or 0
    return response


def _upload_profile_image(storage: BaseStorage, file: UploadFile, user_id: str, bucket: str, folder: str) -> Optional[str]:
    """Uploads an avatar/banner; on failure logs and returns None so the old URL is kept."""
    if not storage.ensure_bucket_exists(bucket):
        return None
    file_extension = file.filename.split(".")[-1] if file.filename and "." in file.filename else "png"
    filename = f"{user_id}-{uuid.uuid4().hex[:13]}.{file_extension}"
    try:
        return storage.save(file=file, filename=filename, bucket=bucket, folder=folder)
    except StorageError as e:
        logger.error("Erro ao fazer upload da imagem (%s): %s", bucket, e)
        return None


def update_my_profile(
    db: Session,
    current_user: User,
    storage: BaseStorage,
    profile_data: str,
    avatar_file: Optional[UploadFile],
    banner_file: Optional[UploadFile],
) -> Profile:
    try:
        profile_update = ProfileUpdate.model_validate_json(profile_data)
    except ValidationError as e:
        if any(err.get("type") == "json_invalid" for err in e.errors()):
            raise HTTPException(status_code=400, detail="Invalid JSON format for profile_data")
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    profile = get_profile_or_404(current_user.id, db)
    update_data = profile_update.model_dump(exclude_unset=True)

    if "username" in update_data and update_data["username"] is None:
        raise HTTPException(status_code=422, detail="Nome de usuário deve ter pelo menos 2 caracteres.")

    new_username = update_data.get("username")
    if new_username is not None:
        new_username = new_username.strip()
        if len(new_username) < 2:
            raise HTTPException(status_code=422, detail="Nome de usuário deve ter pelo menos 2 caracteres.")
        taken = (
            db.query(Profile.id)
            .filter(Profile.username == new_username, Profile.id != profile.id)
            .first()
        )
        if taken:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Este nome de usuário já está em uso.")
        update_data["username"] = new_username

    if avatar_file is not None and avatar_file.filename:
        avatar_url = _upload_profile_image(storage, avatar_file, profile.id, "user-avatars", "avatars")
        if avatar_url:
            update_data["avatar_url"] = avatar_url

    if banner_file is not None and banner_file.filename:
        banner_url = _upload_profile_image(storage, banner_file, profile.id, "user-banners", "banners")
        if banner_url:
            update_data["banner_url"] = banner_url

    for field, value in update_data.items():
        setattr(profile, field, value)
    profile.is_verified = profile.username == VERIFIED_USERNAME

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Username já em uso ao salvar perfil %s", profile.id)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Este nome de usuário já está em uso.")
    db.refresh(profile)

    publish_auth_event(current_user.id, "USER_UPDATED")
    return profile


def _brief_profiles(rows) -> List[ProfileBrief]:
    return [ProfileBrief(id=row.id, username=row.username, avatar_url=row.avatar_url) for row in rows]


def get_followers(user_id: str, db: Session) -> List[ProfileBrief]:
    get_profile_or_404(user_id, db)
    rows = (
        db.query(Profile.id, Profile.username, Profile.avatar_url)
        .join(Follow, Follow.follower_id == Profile.id)
        .filter(Follow.followed_id == user_id)
        .order_by(Follow.created_at.desc())
        .all()
    )
    return _brief_profiles(rows)


def get_following(user_id: str, db: Session) -> List[ProfileBrief]:
    get_profile_or_404(user_id, db)
    rows = (
        db.query(Profile.id, Profile.username, Profile.avatar_url)
        .join(Follow, Follow.followed_id == Profile.id)
        .filter(Follow.follower_id == user_id)
        .order_by(Follow.created_at.desc())
        .all()
    )
    return _brief_profiles(rows)


def get_user_articles(user_id: str, db: Session) -> List[ArticleResponse]:
    get_profile_or_404(user_id, db)
    articles = (
        db.query(Article)
        .filter(Article.author_id == user_id)
        .order_by(Article.created_at.desc())
        .all()
    )
    return serialize_articles(db, articles)


def get_saved_articles(db: Session, current_user: User) -> List[ArticleResponse]:
    rows = (
        db.query(Bookmark, Article)
        .outerjoin(Article, Article.id == Bookmark.article_id)
        .filter(Bookmark.user_id == current_user.id)
        .order_by(Bookmark.created_at.desc())
        .all()
    )
    # Favoritos de artigos já excluídos são ignorados
    articles = [article for _, article in rows if article is not None]
    return serialize_articles(db, articles)


def update_fcm_token(fcm_token_update: FCMTokenUpdate, db: Session, current_user: User) -> ProfileResponse:
    current_user.fcm_token = fcm_token_update.fcm_token
    current_user.fcm_token_updated_at = datetime.now(timezone.utc) if fcm_token_update.fcm_token else None
    db.add(current_user)
    db.commit()
    return ProfileResponse.model_validate(get_profile_or_404(current_user.id, db))
