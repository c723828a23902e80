"""Comment model."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from conduit.common.db import Base


class Comment(Base):
    """Reader comment attached to one article."""

    __tablename__ = "comments"

    comment_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid4()))
    article_id: Mapped[str] = mapped_column(ForeignKey("articles.article_id"), index=True)
    author_id: Mapped[str] = mapped_column(ForeignKey("users.user_id"), index=True)
    body: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), server_default=func.now()
    )
