from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from schemas.search import SearchResponse
from database import get_db
from services import search as search_service

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=SearchResponse)
def search(q: str = Query(""), db: Session = Depends(get_db)):
    return search_service.search(q, db)
