import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from starlette.staticfiles import StaticFiles

from database import init_db, get_db
from dependencies import provision_storage
from routers import auth, article, comment, profile, notification, search, realtime
from schemas.article import ArticleFeedResponse
from services import article as article_service
from storage.local import UPLOAD_DIR
from utils import events  # registra os listeners de change feed
from utils.errors import register_exception_handlers

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

# =========================
# Inicialização do banco (tabelas + colunas opcionais)
# =========================
init_db()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not provision_storage():
        logger.warning("Buckets de armazenamento não foram provisionados.")
    yield


# =========================
# App FastAPI
# =========================
app = FastAPI(
    lifespan=lifespan,
    title="Outliers",
    description="Publicação de artigos, comentários e interações sociais",
    version="0.1.0",
)

# =========================
# CORS
# =========================
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=CORS_ORIGINS != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# =========================
# Arquivos enviados (armazenamento local)
# =========================
os.makedirs(UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")

# =========================
# Rotas
# =========================
app.include_router(auth.router)
app.include_router(article.router)
app.include_router(comment.router)
app.include_router(profile.router)
app.include_router(notification.router)
app.include_router(search.router)
app.include_router(realtime.router)

register_exception_handlers(app)


# =========================
# Raiz e categorias
# =========================
@app.get("/")
def root():
    return {"message": "Welcome to Outliers"}


def _category_feed(db: Session = Depends(get_db)) -> ArticleFeedResponse:
    return article_service.get_feed(db)


for category_path in ("/negocios", "/economia", "/tecnologia"):
    app.add_api_route(category_path, _category_feed, methods=["GET"], response_model=ArticleFeedResponse)
