"""Bookmark SQLAlchemy model."""

from uuid import UUID, uuid4

from sqlalchemy import String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.models.mixins import TimestampMixin


class Bookmark(TimestampMixin, Base):
    """An article saved by a user.

    ``user_id`` is a plain string rather than a foreign key: depending on
    which identity source resolved the caller it may hold a user id or an
    email address. At most one bookmark exists per (user_id, article_id).
    """

    __tablename__ = "bookmarks"
    __table_args__ = (
        UniqueConstraint("user_id", "article_id", name="uq_bookmarks_user_id_article_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    article_id: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Base64 encoding of the article URL",
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    url: Mapped[str] = mapped_column(Text, nullable=False)
    url_to_image: Mapped[str] = mapped_column(Text, nullable=False, default="")
    published_at: Mapped[str] = mapped_column(String(64), nullable=False)
    source_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="general")

    def __repr__(self) -> str:
        return f"<Bookmark {self.user_id} {self.url[:50]}>"
