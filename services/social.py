from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Optional
from starlette import status

from models import Article, Bookmark, Comment, CommentLike, Follow, Like, User
from schemas.social import BookmarkStatus, FollowStatus, LikeStatus
from services.article import get_article_or_404
from services.notification import notify
from services.profile import get_profile_or_404

# Alternâncias: procura a linha (viewer, alvo); se existir apaga pelo id,
# senão insere uma nova. Sem trava.


def _like_count(db: Session, article_id: str) -> int:
    return db.query(func.count(Like.id)).filter(Like.article_id == article_id).scalar() or 0


def _follower_count(db: Session, user_id: str) -> int:
    return db.query(func.count(Follow.id)).filter(Follow.followed_id == user_id).scalar() or 0


def _comment_like_count(db: Session, comment_id: str) -> int:
    return db.query(func.count(CommentLike.id)).filter(CommentLike.comment_id == comment_id).scalar() or 0


def _get_comment_or_404(comment_id: str, db: Session) -> Comment:
    comment = db.query(Comment).filter(Comment.id == comment_id).first()
    if not comment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comentário não encontrado.")
    return comment


# ---------------------- curtidas de artigo ----------------------
def get_like_status(article_id: str, db: Session, viewer: Optional[User]) -> LikeStatus:
    get_article_or_404(article_id, db)
    like_count = _like_count(db, article_id)
    if viewer is None:
        return LikeStatus(is_liked=False, like_count=like_count)

    like = db.query(Like).filter(Like.article_id == article_id, Like.user_id == viewer.id).first()
    return LikeStatus(is_liked=like is not None, like_id=like.id if like else None, like_count=like_count)


def toggle_like(article_id: str, db: Session, current_user: User) -> LikeStatus:
    article: Article = get_article_or_404(article_id, db)
    like = db.query(Like).filter(Like.article_id == article_id, Like.user_id == current_user.id).first()

    if like:
        db.query(Like).filter(Like.id == like.id).delete(synchronize_session=False)
        db.commit()
        return LikeStatus(is_liked=False, like_count=_like_count(db, article_id))

    like = Like(article_id=article_id, user_id=current_user.id)
    db.add(like)
    db.commit()
    db.refresh(like)

    notify(db, article.author_id, current_user.id, "like", article_id=article_id)
    return LikeStatus(is_liked=True, like_id=like.id, like_count=_like_count(db, article_id))


# ---------------------- favoritos ----------------------
def get_bookmark_status(article_id: str, db: Session, viewer: Optional[User]) -> BookmarkStatus:
    get_article_or_404(article_id, db)
    if viewer is None:
        return BookmarkStatus(is_bookmarked=False)

    bookmark = db.query(Bookmark).filter(Bookmark.article_id == article_id, Bookmark.user_id == viewer.id).first()
    return BookmarkStatus(is_bookmarked=bookmark is not None, bookmark_id=bookmark.id if bookmark else None)


def toggle_bookmark(article_id: str, db: Session, current_user: User) -> BookmarkStatus:
    get_article_or_404(article_id, db)
    bookmark = (
        db.query(Bookmark)
        .filter(Bookmark.article_id == article_id, Bookmark.user_id == current_user.id)
        .first()
    )

    if bookmark:
        db.query(Bookmark).filter(Bookmark.id == bookmark.id).delete(synchronize_session=False)
        db.commit()
        return BookmarkStatus(is_bookmarked=False)

    bookmark = Bookmark(article_id=article_id, user_id=current_user.id)
    db.add(bookmark)
    db.commit()
    db.refresh(bookmark)
    return BookmarkStatus(is_bookmarked=True, bookmark_id=bookmark.id)


# ---------------------- seguir ----------------------
def get_follow_status(user_id: str, db: Session, viewer: Optional[User]) -> FollowStatus:
    get_profile_or_404(user_id, db)
    follower_count = _follower_count(db, user_id)
    if viewer is None:
        return FollowStatus(is_following=False, follower_count=follower_count)

    follow = db.query(Follow).filter(Follow.follower_id == viewer.id, Follow.followed_id == user_id).first()
    return FollowStatus(
        is_following=follow is not None,
        follow_id=follow.id if follow else None,
        follower_count=follower_count,
    )


def toggle_follow(user_id: str, db: Session, current_user: User) -> FollowStatus:
    get_profile_or_404(user_id, db)
    if user_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Você não pode seguir a si mesmo.")

    follow = (
        db.query(Follow)
        .filter(Follow.follower_id == current_user.id, Follow.followed_id == user_id)
        .first()
    )

    if follow:
        db.query(Follow).filter(Follow.id == follow.id).delete(synchronize_session=False)
        db.commit()
        return FollowStatus(is_following=False, follower_count=_follower_count(db, user_id))

    follow = Follow(follower_id=current_user.id, followed_id=user_id)
    db.add(follow)
    db.commit()
    db.refresh(follow)

    notify(db, user_id, current_user.id, "follow")
    return FollowStatus(is_following=True, follow_id=follow.id, follower_count=_follower_count(db, user_id))


# ---------------------- curtidas de comentário ----------------------
def get_comment_like_status(comment_id: str, db: Session, viewer: Optional[User]) -> LikeStatus:
    _get_comment_or_404(comment_id, db)
    like_count = _comment_like_count(db, comment_id)
    if viewer is None:
        return LikeStatus(is_liked=False, like_count=like_count)

    like = (
        db.query(CommentLike)
        .filter(CommentLike.comment_id == comment_id, CommentLike.user_id == viewer.id)
        .first()
    )
    return LikeStatus(is_liked=like is not None, like_id=like.id if like else None, like_count=like_count)


def toggle_comment_like(comment_id: str, db: Session, current_user: User) -> LikeStatus:
    comment = _get_comment_or_404(comment_id, db)
    like = (
        db.query(CommentLike)
        .filter(CommentLike.comment_id == comment_id, CommentLike.user_id == current_user.id)
        .first()
    )

    if like:
        db.query(CommentLike).filter(CommentLike.id == like.id).delete(synchronize_session=False)
        db.commit()
        return LikeStatus(is_liked=False, like_count=_comment_like_count(db, comment_id))

    like = CommentLike(comment_id=comment_id, user_id=current_user.id)
    db.add(like)
    db.commit()
    db.refresh(like)

    notify(
        db, comment.user_id, current_user.id, "comment_like",
        article_id=comment.article_id, comment_id=comment.id,
    )
    return LikeStatus(is_liked=True, like_id=like.id, like_count=_comment_like_count(db, comment_id))
