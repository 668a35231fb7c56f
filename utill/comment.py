import re
from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from typing import Dict, Iterable, List, Optional

from models.article import Article, Comment
from models.user import Profile
from schemas.comment import CommentResponse
from schemas.user import ProfileBrief
from services.notification import notify

MENTION_PATTERN = re.compile(r"@(\w+)")

FALLBACK_USERNAME = "Usuário"


def extract_mention(content: str) -> Optional[str]:
    """Returns the handle of the first @word token, without the @."""
    match = MENTION_PATTERN.search(content or "")
    return match.group(1) if match else None


def resolve_mention(content: str, known_users: Dict[str, str]) -> Optional[str]:
    """
    Resolves the first @-mention against known usernames, case-insensitively.

    Args:
        content (str): The comment text.
        known_users (dict): username -> profile id.

    Returns:
        The mentioned profile id, or None when the handle is absent or unknown.
    """
    handle = extract_mention(content)
    if not handle:
        return None
    lowered = {username.lower(): user_id for username, user_id in known_users.items()}
    return lowered.get(handle.lower())


def known_usernames(db: Session, article: Article) -> Dict[str, str]:
    """Article author plus everyone who already commented on the article."""
    rows = (
        db.query(Profile.username, Profile.id)
        .filter(
            or_(
                Profile.id == article.author_id,
                Profile.id.in_(select(Comment.user_id).where(Comment.article_id == article.id)),
            )
        )
        .all()
    )
    return {username: user_id for username, user_id in rows}


def fetch_authors(db: Session, user_ids: Iterable[str]) -> Dict[str, ProfileBrief]:
    ids = set(user_ids)
    if not ids:
        return {}
    profiles = db.query(Profile.id, Profile.username, Profile.avatar_url).filter(Profile.id.in_(ids)).all()
    return {p.id: ProfileBrief(id=p.id, username=p.username, avatar_url=p.avatar_url) for p in profiles}


def build_thread(
    comments: List[Comment],
    authors: Dict[str, ProfileBrief],
    like_counts: Dict[str, int],
    liked_ids: Iterable[str] = (),
) -> List[CommentResponse]:
    """
    Joins comments with their authors and resolves "replying to @x".

    The thread stays flat; a reply's parent author is looked up by scanning
    the already-fetched comments, so a parent outside the list resolves to None.
    """
    liked_ids = set(liked_ids)
    by_id = {comment.id: comment for comment in comments}

    result = []
    for comment in comments:
        author = authors.get(comment.user_id) or ProfileBrief(id=comment.user_id, username=FALLBACK_USERNAME)
        reply_to_username = None
        if comment.parent_id and comment.parent_id in by_id:
            parent_author = authors.get(by_id[comment.parent_id].user_id)
            reply_to_username = parent_author.username if parent_author else FALLBACK_USERNAME
        result.append(
            CommentResponse(
                id=comment.id,
                content=comment.content,
                article_id=comment.article_id,
                user_id=comment.user_id,
                parent_id=comment.parent_id,
                mention_user_id=comment.mention_user_id,
                created_at=comment.created_at,
                author=author,
                reply_to_username=reply_to_username,
                like_count=like_counts.get(comment.id, 0),
                liked_by_viewer=comment.id in liked_ids,
            )
        )
    return result


def process_comment_notifications(
        db: Session,
        new_comment: Comment,
        article: Article,
        parent_comment: Optional[Comment],
        actor_id: str
):
    """
    Notifies the article author, the replied-to author and the mentioned user.

    Each insert is independent and skipped when it would notify the actor.
    """
    notify(db, article.author_id, actor_id, "comment", article_id=article.id, comment_id=new_comment.id)

    if parent_comment is not None:
        notify(db, parent_comment.user_id, actor_id, "comment_reply", article_id=article.id, comment_id=new_comment.id)

    if new_comment.mention_user_id:
        notify(db, new_comment.mention_user_id, actor_id, "comment_mention", article_id=article.id, comment_id=new_comment.id)
