"""Article comment logic."""

from sqlalchemy import select

from conduit.services.articles.models import Article
from conduit.services.comments.models import Comment
from conduit.services.users.models import User


class CommentsService:
    """Adds and lists comments on articles addressed by slug."""

    def __init__(self, session_factory, settings) -> None:
        self.session_factory = session_factory
        self.settings = settings

    def _article_id(self, db, slug: str) -> str:
        article_id = db.execute(select(Article.article_id).where(Article.slug == slug)).scalar_one_or_none()
        if article_id is None:
            raise LookupError(f"unknown article: {slug}")
        return article_id

    def add_comment(self, author_id: str, slug: str, body: str) -> dict:
        if not body.strip():
            raise ValueError("comment body must not be empty")
        with self.session_factory() as db:
            comment = Comment(article_id=self._article_id(db, slug), author_id=author_id, body=body)
            db.add(comment)
            db.commit()
            author = db.get(User, author_id)
            return {
                "id": comment.comment_id,
                "body": comment.body,
                "author": author.username,
                "created_at": comment.created_at,
            }

    def list_for_article(self, slug: str) -> list[dict]:
        """Comments for one article, oldest first."""

        with self.session_factory() as db:
            rows = db.execute(
                select(Comment, User.username)
                .join(User, User.user_id == Comment.author_id)
                .where(Comment.article_id == self._article_id(db, slug))
                .order_by(Comment.created_at, Comment.comment_id)
            ).all()
            return [
                {
                    "id": comment.comment_id,
                    "body": comment.body,
                    "author": username,
                    "created_at": comment.created_at,
                }
                for comment, username in rows
            ]
