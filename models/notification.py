from sqlalchemy import Column, DateTime, ForeignKey, String, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base
from .base import new_id, utcnow

NOTIFICATION_TYPES = ("follow", "like", "comment", "comment_like", "comment_reply", "comment_mention")


class Notification(Base):
    __tablename__ = "notifications"
    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)  # destinatário
    actor_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    article_id = Column(String(36), ForeignKey("articles.id"), nullable=True, index=True)
    comment_id = Column(String(36), ForeignKey("comments.id", ondelete="SET NULL"), nullable=True)
    type = Column(String(32), nullable=False)  # um de NOTIFICATION_TYPES
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    actor = relationship("Profile", foreign_keys=[actor_id])
    article = relationship("Article")
