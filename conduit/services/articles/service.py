"""Article publishing, listing and tag logic."""

import re
from uuid import uuid4

from sqlalchemy import func, select

from conduit.common.logging import logger
from conduit.services.articles.models import Article, ArticleTag, Favorite, Tag
from conduit.services.users.models import User


def slugify(title: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug or "article"


class ArticlesService:
    """Owns articles, their tags and favorite marks."""

    def __init__(self, session_factory, settings) -> None:
        self.session_factory = session_factory
        self.settings = settings

    def _view(self, db, article: Article) -> dict:
        """Flatten one article with author, tags and favorite count."""

        author = db.get(User, article.author_id)
        tags = db.execute(
            select(ArticleTag.tag_name)
            .where(ArticleTag.article_id == article.article_id)
            .order_by(ArticleTag.tag_name)
        ).scalars().all()
        favorites = db.execute(
            select(func.count()).select_from(Favorite).where(Favorite.article_id == article.article_id)
        ).scalar_one()
        return {
            "slug": article.slug,
            "title": article.title,
            "description": article.description,
            "body": article.body,
            "tag_list": list(tags),
            "author": author.username,
            "favorites_count": int(favorites),
            "created_at": article.created_at,
            "updated_at": article.updated_at,
        }

    def create_article(
        self,
        author_id: str,
        title: str,
        description: str,
        body: str,
        tags: list[str] | None = None,
    ) -> dict:
        """Publish an article; unknown tags are created on the fly."""

        with self.session_factory() as db:
            if db.get(User, author_id) is None:
                raise LookupError(f"unknown author: {author_id}")
            slug = slugify(title)
            if db.execute(select(Article.article_id).where(Article.slug == slug)).first():
                slug = f"{slug}-{uuid4().hex[:8]}"
            article = Article(slug=slug, title=title, description=description, body=body, author_id=author_id)
            db.add(article)
            db.flush()
            names = sorted({tag.strip() for tag in tags or [] if tag.strip()})
            for name in names:
                if db.get(Tag, name) is None:
                    db.add(Tag(name=name))
            db.flush()
            for name in names:
                db.add(ArticleTag(article_id=article.article_id, tag_name=name))
            db.commit()
            logger.debug("article created slug=%s", slug)
            return self._view(db, article)

    def get_by_slug(self, slug: str) -> dict | None:
        with self.session_factory() as db:
            article = db.execute(select(Article).where(Article.slug == slug)).scalar_one_or_none()
            if article is None:
                return None
            return self._view(db, article)

    def list_articles(
        self,
        tag: str | None = None,
        author: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[dict]:
        """Most recent articles first, optionally filtered by tag or author."""

        with self.session_factory() as db:
            query = select(Article)
            if tag:
                query = query.join(ArticleTag, ArticleTag.article_id == Article.article_id).where(
                    ArticleTag.tag_name == tag
                )
            if author:
                query = query.join(User, User.user_id == Article.author_id).where(User.username == author)
            query = query.order_by(Article.created_at.desc(), Article.slug).limit(limit).offset(offset)
            return [self._view(db, article) for article in db.execute(query).scalars().all()]

    def favorite(self, user_id: str, slug: str) -> dict:
        """Mark an article as favorite for a user; repeated marks count once."""

        with self.session_factory() as db:
            article = db.execute(select(Article).where(Article.slug == slug)).scalar_one_or_none()
            if article is None:
                raise LookupError(f"unknown article: {slug}")
            if db.get(Favorite, (user_id, article.article_id)) is None:
                db.add(Favorite(user_id=user_id, article_id=article.article_id))
                db.commit()
            return self._view(db, article)


class TagsService:
    def __init__(self, session_factory, settings) -> None:
        self.session_factory = session_factory
        self.settings = settings

    def list_tags(self) -> list[str]:
        with self.session_factory() as db:
            return list(db.execute(select(Tag.name).order_by(Tag.name)).scalars().all())
