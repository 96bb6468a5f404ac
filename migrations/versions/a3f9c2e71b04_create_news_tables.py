"""create news tables

Revision ID: a3f9c2e71b04
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "a3f9c2e71b04"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _get_inspector():
    conn = op.get_bind()
    return conn, sa.inspect(conn)


def _table_exists(inspector, table_name: str) -> bool:
    try:
        return table_name in inspector.get_table_names()
    except Exception:
        return False


def upgrade() -> None:
    _, inspector = _get_inspector()

    if not _table_exists(inspector, "users"):
        op.create_table(
            "users",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("email", sa.String(length=100), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)

    if not _table_exists(inspector, "otp_codes"):
        op.create_table(
            "otp_codes",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column(
                "user_id", sa.String(length=36),
                sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
            ),
            sa.Column("otp", sa.String(length=10), nullable=False),
            sa.Column("purpose", sa.String(length=30), nullable=False),
            sa.Column("expires_at", sa.DateTime(), nullable=False),
            sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_otp_codes_user_purpose", "otp_codes", ["user_id", "purpose"])

    if not _table_exists(inspector, "categories"):
        op.create_table(
            "categories",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
        )

    if not _table_exists(inspector, "tags"):
        op.create_table(
            "tags",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("name", sa.String(length=50), nullable=False),
        )
        op.create_index("ix_tags_name", "tags", ["name"], unique=True)

    if not _table_exists(inspector, "articles"):
        op.create_table(
            "articles",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("title", sa.String(length=100), nullable=False),
            sa.Column("slug", sa.String(length=100), nullable=False),
            sa.Column("thumbnail", sa.String(length=255), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column(
                "category_id", sa.String(length=36),
                sa.ForeignKey("categories.id", ondelete="CASCADE"), nullable=False,
            ),
            sa.Column(
                "author_id", sa.String(length=36),
                sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
            ),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_articles_slug", "articles", ["slug"], unique=True)

    if not _table_exists(inspector, "article_tags"):
        op.create_table(
            "article_tags",
            sa.Column(
                "article_id", sa.String(length=36),
                sa.ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True,
            ),
            sa.Column(
                "tag_id", sa.String(length=36),
                sa.ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True,
            ),
        )

    if not _table_exists(inspector, "comments"):
        op.create_table(
            "comments",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column(
                "user_id", sa.String(length=36),
                sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
            ),
            sa.Column(
                "article_id", sa.String(length=36),
                sa.ForeignKey("articles.id", ondelete="CASCADE"), nullable=False,
            ),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_comments_article_id", "comments", ["article_id"])


def downgrade() -> None:
    op.drop_table("comments")
    op.drop_table("article_tags")
    op.drop_table("articles")
    op.drop_table("tags")
    op.drop_table("categories")
    op.drop_table("otp_codes")
    op.drop_table("users")
