"""Create bookmarks table.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the bookmarks table."""
    op.create_table(
        "bookmarks",
        sa.Column("id", sa.Uuid(), nullable=False),
        # Plain string, not a foreign key: may hold a user id or an email
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column(
            "article_id",
            sa.Text(),
            nullable=False,
            comment="Base64 encoding of the article URL",
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("url_to_image", sa.Text(), nullable=False),
        sa.Column("published_at", sa.String(64), nullable=False),
        sa.Column("source_name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_bookmarks")),
        sa.UniqueConstraint(
            "user_id",
            "article_id",
            name="uq_bookmarks_user_id_article_id",
        ),
    )
    op.create_index(op.f("ix_bookmarks_user_id"), "bookmarks", ["user_id"])


def downgrade() -> None:
    """Drop the bookmarks table."""
    op.drop_index(op.f("ix_bookmarks_user_id"), table_name="bookmarks")
    op.drop_table("bookmarks")
