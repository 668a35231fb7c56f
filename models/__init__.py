from .user import User, Profile
from .article import Article, Comment
from .social import Like, Bookmark, CommentLike, Follow
from .notification import Notification, NOTIFICATION_TYPES

__all__ = [
    "User", "Profile", "Article", "Comment", "Like", "Bookmark",
    "CommentLike", "Follow", "Notification", "NOTIFICATION_TYPES",
]
