"""API response schemas for the read endpoints."""

from datetime import datetime

from pydantic import BaseModel


class ProfileResponse(BaseModel):
    username: str
    bio: str
    image: str | None = None
    following: bool = False


class ArticleResponse(BaseModel):
    """One article as returned by the article endpoints."""

    slug: str
    title: str
    description: str
    body: str
    tag_list: list[str]
    author: str
    favorites_count: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ArticleListResponse(BaseModel):
    articles: list[ArticleResponse]
    articles_count: int


class CommentResponse(BaseModel):
    id: str
    body: str
    author: str
    created_at: datetime | None = None


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]


class TagListResponse(BaseModel):
    tags: list[str]
