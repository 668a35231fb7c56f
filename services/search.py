from sqlalchemy.orm import Session, selectinload

from models import Article, Profile
from schemas.search import ArticleSearchItem, AuthorSearchItem, SearchResponse

SEARCH_LIMIT = 3


def search(q: str, db: Session) -> SearchResponse:
    term = (q or "").strip()
    if not term:
        return SearchResponse()

    pattern = f"%{term}%"
    articles = (
        db.query(Article)
        .options(selectinload(Article.author))
        .filter(Article.title.ilike(pattern))
        .order_by(Article.created_at.desc())
        .limit(SEARCH_LIMIT)
        .all()
    )
    authors = (
        db.query(Profile)
        .filter(Profile.username.ilike(pattern))
        .order_by(Profile.username)
        .limit(SEARCH_LIMIT)
        .all()
    )

    return SearchResponse(
        articles=[ArticleSearchItem.model_validate(article) for article in articles],
        authors=[AuthorSearchItem.model_validate(author) for author in authors],
    )
