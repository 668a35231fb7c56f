from sqlalchemy import Column, String, ForeignKey, DateTime, func
from database import Base
from .base import new_id, utcnow

# Relações de alternância (curtir, salvar, seguir). Unicidade por par é
# verificada antes de inserir, não por constraint.


class Like(Base):
    __tablename__ = "likes"

    id = Column(String(36), primary_key=True, default=new_id)
    article_id = Column(String(36), ForeignKey("articles.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())


class Bookmark(Base):
    __tablename__ = "bookmarks"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    article_id = Column(String(36), ForeignKey("articles.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())


class CommentLike(Base):
    __tablename__ = "comment_likes"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    comment_id = Column(String(36), ForeignKey("comments.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())


class Follow(Base):
    __tablename__ = "follows"

    id = Column(String(36), primary_key=True, default=new_id)
    follower_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    followed_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
