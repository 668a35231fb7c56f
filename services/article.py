from fastapi import HTTPException, UploadFile
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from typing import List, Optional
from urllib.parse import quote
import logging
import os
import uuid
from pydantic import ValidationError
from starlette import status

from models import Article, Comment, CommentLike, Like, Bookmark, Notification, User
from schemas.article import (
    ArticleCreate, ArticleUpdate, ArticleResponse, ArticleFeedResponse, ShareOption, ShareResponse
)
from storage.base import BaseStorage

logger = logging.getLogger(__name__)

APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:5173").rstrip("/")

FEED_PAGE_SIZE = 6
ARTICLE_IMAGES_BUCKET = "images"


def _counts_by_article(db: Session, model, article_ids: List[str]) -> dict:
    if not article_ids:
        return {}
    rows = (
        db.query(model.article_id, func.count(model.id))
        .filter(model.article_id.in_(article_ids))
        .group_by(model.article_id)
        .all()
    )
    return dict(rows)


def serialize_articles(db: Session, articles: List[Article]) -> List[ArticleResponse]:
    article_ids = [article.id for article in articles]
    like_counts = _counts_by_article(db, Like, article_ids)
    comment_counts = _counts_by_article(db, Comment, article_ids)

    response = []
    for article in articles:
        model = ArticleResponse.model_validate(article)
        model.like_count = like_counts.get(article.id, 0)
        model.comment_count = comment_counts.get(article.id, 0)
        response.append(model)
    return response


def get_article_or_404(article_id: str, db: Session) -> Article:
    article = db.query(Article).options(selectinload(Article.author)).filter(Article.id == article_id).first()
    if not article:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Artigo não encontrado.")
    return article


def get_feed(
    db: Session,
    page: int = 0,
    page_size: int = FEED_PAGE_SIZE,
    q: Optional[str] = None,
    category: Optional[str] = None,
) -> ArticleFeedResponse:
    """Offset pagination over the newest articles; page is zero-based."""
    query = db.query(Article).options(selectinload(Article.author))

    if q and q.strip():
        pattern = f"%{q.strip()}%"
        query = query.filter(or_(Article.title.ilike(pattern), Article.content.ilike(pattern)))
    if category:
        query = query.filter(Article.category == category)

    articles = (
        query.order_by(Article.created_at.desc())
        .offset(page * page_size)
        .limit(page_size)
        .all()
    )

    return ArticleFeedResponse(
        items=serialize_articles(db, articles),
        page=page,
        page_size=page_size,
        has_more=len(articles) == page_size,
    )


def _upload_article_image(storage: BaseStorage, image: UploadFile) -> str:
    storage.ensure_bucket_exists(ARTICLE_IMAGES_BUCKET)
    file_extension = image.filename.split(".")[-1] if "." in image.filename else "png"
    filename = f"{uuid.uuid4().hex[:13]}.{file_extension}"
    return storage.save(file=image, filename=filename, bucket=ARTICLE_IMAGES_BUCKET, folder="article-images")


def get_article(article_id: str, db: Session) -> ArticleResponse:
    return serialize_articles(db, [get_article_or_404(article_id, db)])[0]


def create_article(
    db: Session,
    current_user: User,
    storage: BaseStorage,
    article_data: str,
    image: Optional[UploadFile],
) -> ArticleResponse:
    try:
        article_create = ArticleCreate.model_validate_json(article_data)
    except ValidationError as e:
        if any(err.get("type") == "json_invalid" for err in e.errors()):
            raise HTTPException(status_code=400, detail="Invalid JSON format for article_data")
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    if not article_create.title.strip() or not article_create.content.strip() \
            or not article_create.category.strip() or image is None or not image.filename:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Preencha todos os campos e selecione uma imagem.",
        )

    image_url = _upload_article_image(storage, image)

    new_article = Article(
        title=article_create.title,
        content=article_create.content,
        category=article_create.category,
        image_url=image_url,
        author_id=current_user.id,
    )
    db.add(new_article)
    db.commit()
    db.refresh(new_article)

    logger.info("Artigo %s criado por %s", new_article.id, current_user.id)
    return get_article(new_article.id, db)


def update_article(
    article_id: str,
    article_update: str,
    db: Session,
    current_user: User,
    storage: BaseStorage,
    image: Optional[UploadFile],
) -> ArticleResponse:
    try:
        update = ArticleUpdate.model_validate_json(article_update)
    except ValidationError as e:
        # model_validate_json also reports malformed JSON as a ValidationError
        if any(err.get("type") == "json_invalid" for err in e.errors()):
            raise HTTPException(status_code=400, detail="Invalid JSON format for article_update")
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    article = get_article_or_404(article_id, db)
    if article.author_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Você não tem permissão para editar este artigo.")

    values = {
        "title": update.title if update.title is not None else article.title,
        "content": update.content if update.content is not None else article.content,
        "category": update.category if update.category is not None else article.category,
        "image_url": update.image_url if update.image_url is not None else (article.image_url or ""),
    }

    if image is not None and image.filename:
        values["image_url"] = _upload_article_image(storage, image)

    values = {key: value.strip() for key, value in values.items()}
    if not all(values.values()):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Por favor, preencha todos os campos.")

    for key, value in values.items():
        setattr(article, key, value)
    db.commit()

    return get_article(article_id, db)


def _delete_step(db: Session, label: str, query) -> None:
    try:
        deleted = query.delete(synchronize_session=False)
        db.commit()
        logger.debug("Excluídos %s registros de %s", deleted, label)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Erro ao excluir %s do artigo: %s", label, e)


def delete_article(article_id: str, db: Session, current_user: User) -> dict:
    """
    Removes an article and the rows that reference it, one table at a time.

    Each dependent step commits on its own; a failing step is logged and the
    sequence moves on. Only the final delete of the article row is reported
    back to the caller.
    """
    article = get_article_or_404(article_id, db)
    if article.author_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Você não tem permissão para excluir este artigo.")

    comment_ids = select(Comment.id).where(Comment.article_id == article_id)

    _delete_step(db, "curtidas de comentários", db.query(CommentLike).filter(CommentLike.comment_id.in_(comment_ids)))
    _delete_step(db, "comentários", db.query(Comment).filter(Comment.article_id == article_id))
    _delete_step(db, "curtidas", db.query(Like).filter(Like.article_id == article_id))
    _delete_step(db, "favoritos", db.query(Bookmark).filter(Bookmark.article_id == article_id))
    _delete_step(db, "notificações", db.query(Notification).filter(Notification.article_id == article_id))

    try:
        db.query(Article).filter(Article.id == article_id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Erro ao excluir artigo %s: %s", article_id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Não foi possível excluir o artigo.")

    logger.info("Artigo %s excluído por %s", article_id, current_user.id)
    return {"message": "Artigo excluído com sucesso."}


def get_share_links(article_id: str, db: Session) -> ShareResponse:
    article = get_article_or_404(article_id, db)
    url = f"{APP_BASE_URL}/article/{article.id}"
    encoded_url = quote(url, safe="")
    encoded_title = quote(article.title, safe="")
    encoded_text = quote(f"{article.title} - {url}", safe="")

    return ShareResponse(
        title=article.title,
        url=url,
        options=[
            ShareOption(name="Copiar link", url=url),
            ShareOption(name="WhatsApp", url=f"https://wa.me/?text={encoded_text}"),
            ShareOption(name="Twitter / X", url=f"https://twitter.com/intent/tweet?text={encoded_title}&url={encoded_url}"),
            ShareOption(name="LinkedIn", url=f"https://www.linkedin.com/sharing/share-offsite/?url={encoded_url}"),
            ShareOption(name="Facebook", url=f"https://www.facebook.com/sharer/sharer.php?u={encoded_url}"),
        ],
    )
