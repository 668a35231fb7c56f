from sqlalchemy import Column, String, Text, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base
from .base import new_id, utcnow


class Article(Base):
    __tablename__ = "articles"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(300), nullable=False)
    content = Column(Text, nullable=False)  # HTML
    category = Column(String(50), nullable=False)
    image_url = Column(String, nullable=True)
    author_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    author = relationship("Profile", back_populates="articles")


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=new_id)
    content = Column(Text, nullable=False)
    article_id = Column(String(36), ForeignKey("articles.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    # Respostas são achatadas; parent_id só serve para "respondendo a @x"
    parent_id = Column(String(36), ForeignKey("comments.id", ondelete="SET NULL"), nullable=True)
    mention_user_id = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    author = relationship("Profile", foreign_keys=[user_id])
