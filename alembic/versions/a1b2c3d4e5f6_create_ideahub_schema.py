"""create users, ideas, likes, ratings, report and job lease tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=200), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("total_ideas", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_likes", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_ratings", sa.Integer(), server_default="0", nullable=False),
        sa.Column("score", sa.Float(), nullable=True),
        sa.Column("top_contributor", sa.Boolean(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("total_ideas >= 0", name="ck_users_total_ideas_non_negative"),
        sa.CheckConstraint("total_likes >= 0", name="ck_users_total_likes_non_negative"),
        sa.CheckConstraint(
            "total_ratings >= 0", name="ck_users_total_ratings_non_negative",
        ),
        sa.CheckConstraint(
            "role IN ('Student', 'Lecturer', 'Admin')", name="ck_users_role",
        ),
    )
    op.create_index("ix_users_top_contributor", "users", ["top_contributor"])

    op.create_table(
        "ideas",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("owner_name", sa.String(length=200), nullable=False),
        sa.Column("owner_role", sa.String(length=20), nullable=False),
        sa.Column("likes_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_ratings", sa.Integer(), server_default="0", nullable=False),
        sa.Column("rating_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_ideas"),
        sa.CheckConstraint("likes_count >= 0", name="ck_ideas_likes_count_non_negative"),
        sa.CheckConstraint(
            "total_ratings >= 0", name="ck_ideas_total_ratings_non_negative",
        ),
        sa.CheckConstraint(
            "rating_count >= 0", name="ck_ideas_rating_count_non_negative",
        ),
    )
    op.create_index("ix_ideas_created_at", "ideas", ["created_at"])
    op.create_index("ix_ideas_owner_id", "ideas", ["owner_id"])

    op.create_table(
        "idea_likes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("idea_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_idea_likes"),
        sa.ForeignKeyConstraint(
            ["idea_id"], ["ideas.id"],
            name="fk_idea_likes_idea_id_ideas", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"],
            name="fk_idea_likes_user_id_users", ondelete="CASCADE",
        ),
        sa.UniqueConstraint("idea_id", "user_id", name="uq_idea_likes_idea_id_user_id"),
    )
    op.create_index("ix_idea_likes_user_id", "idea_likes", ["user_id"])

    op.create_table(
        "idea_ratings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("idea_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("rating_value", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_idea_ratings"),
        sa.ForeignKeyConstraint(
            ["idea_id"], ["ideas.id"],
            name="fk_idea_ratings_idea_id_ideas", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"],
            name="fk_idea_ratings_user_id_users", ondelete="CASCADE",
        ),
        sa.UniqueConstraint(
            "idea_id", "user_id", name="uq_idea_ratings_idea_id_user_id",
        ),
        sa.CheckConstraint(
            "rating_value BETWEEN 1 AND 5",
            name="ck_idea_ratings_rating_value_range",
        ),
    )
    op.create_index("ix_idea_ratings_user_id", "idea_ratings", ["user_id"])

    op.create_table(
        "idea_reports",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "total_student_ideas", sa.Integer(), server_default="0", nullable=False,
        ),
        sa.Column(
            "total_lecturer_ideas", sa.Integer(), server_default="0", nullable=False,
        ),
        sa.Column(
            "total_admin_ideas", sa.Integer(), server_default="0", nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_idea_reports"),
    )

    op.create_table(
        "job_leases",
        sa.Column("job_name", sa.String(length=100), nullable=False),
        sa.Column("holder", sa.String(length=100), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("job_name", name="pk_job_leases"),
    )


def downgrade() -> None:
    op.drop_table("job_leases")
    op.drop_table("idea_reports")
    op.drop_index("ix_idea_ratings_user_id", table_name="idea_ratings")
    op.drop_table("idea_ratings")
    op.drop_index("ix_idea_likes_user_id", table_name="idea_likes")
    op.drop_table("idea_likes")
    op.drop_index("ix_ideas_owner_id", table_name="ideas")
    op.drop_index("ix_ideas_created_at", table_name="ideas")
    op.drop_table("ideas")
    op.drop_index("ix_users_top_contributor", table_name="users")
    op.drop_table("users")
