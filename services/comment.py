from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
from starlette import status

from models import Comment, CommentLike, Notification, User
from schemas.comment import CommentCreate, CommentResponse
from services.article import get_article_or_404
from utill.comment import (
    build_thread, fetch_authors, known_usernames, process_comment_notifications, resolve_mention
)

logger = logging.getLogger(__name__)


def _like_counts(db: Session, comment_ids: List[str]) -> dict:
    if not comment_ids:
        return {}
    rows = (
        db.query(CommentLike.comment_id, func.count(CommentLike.id))
        .filter(CommentLike.comment_id.in_(comment_ids))
        .group_by(CommentLike.comment_id)
        .all()
    )
    return dict(rows)


def get_comments(article_id: str, db: Session, viewer: Optional[User]) -> List[CommentResponse]:
    get_article_or_404(article_id, db)

    comments = (
        db.query(Comment)
        .filter(Comment.article_id == article_id)
        .order_by(Comment.created_at.desc())
        .all()
    )
    if not comments:
        return []

    comment_ids = [comment.id for comment in comments]
    authors = fetch_authors(db, (comment.user_id for comment in comments))

    liked_ids = []
    if viewer is not None:
        liked_ids = [
            row.comment_id for row in
            db.query(CommentLike.comment_id)
            .filter(CommentLike.user_id == viewer.id, CommentLike.comment_id.in_(comment_ids))
            .all()
        ]

    return build_thread(comments, authors, _like_counts(db, comment_ids), liked_ids)


def create_comment(article_id: str, comment: CommentCreate, db: Session, current_user: User) -> CommentResponse:
    article = get_article_or_404(article_id, db)

    content = comment.content.strip()
    if not content:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Por favor, escreva algo para comentar.")

    parent_comment = None
    if comment.parent_id:
        parent_comment = db.query(Comment).filter(Comment.id == comment.parent_id).first()
        if not parent_comment:
            raise HTTPException(status_code=404, detail="Comentário respondido não encontrado.")
        if parent_comment.article_id != article_id:
            raise HTTPException(status_code=400, detail="O comentário respondido pertence a outro artigo.")

    mention_user_id = resolve_mention(content, known_usernames(db, article))

    new_comment = Comment(
        content=content,
        article_id=article_id,
        user_id=current_user.id,
        parent_id=parent_comment.id if parent_comment is not None else None,
        mention_user_id=mention_user_id,
    )
    db.add(new_comment)
    db.commit()
    db.refresh(new_comment)

    process_comment_notifications(
        db=db,
        new_comment=new_comment,
        article=article,
        parent_comment=parent_comment,
        actor_id=current_user.id,
    )

    comments = [new_comment] + ([parent_comment] if parent_comment is not None else [])
    authors = fetch_authors(db, (c.user_id for c in comments))
    return build_thread(comments, authors, {})[0]


def delete_comment(comment_id: str, db: Session, current_user: User) -> dict:
    comment = db.query(Comment).filter(Comment.id == comment_id).first()
    if not comment:
        raise HTTPException(status_code=404, detail="Comentário não encontrado.")
    if comment.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Você não tem permissão para excluir este comentário.")

    for label, query in (
        ("curtidas", db.query(CommentLike).filter(CommentLike.comment_id == comment_id)),
        ("notificações", db.query(Notification).filter(Notification.comment_id == comment_id)),
    ):
        try:
            query.delete(synchronize_session=False)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Erro ao excluir %s do comentário %s: %s", label, comment_id, e)

    db.query(Comment).filter(Comment.id == comment_id).delete(synchronize_session=False)
    db.commit()
    return {"message": "Comentário excluído com sucesso."}
