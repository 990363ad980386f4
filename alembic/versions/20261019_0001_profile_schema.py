"""Create users, profiles and profile section tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


ENUM_VALUES = {
    "profile_template": ("minimal", "research-focused", "teaching-oriented", "industry-hybrid"),
    "profile_visibility": ("public", "unlisted", "private"),
    "publication_type": (
        "journal-article",
        "book",
        "book-chapter",
        "conference-paper",
        "preprint",
        "other",
    ),
    "grant_role": ("PI", "Co-PI", "Co-I", "Other"),
    "grant_status": ("Active", "Completed", "Pending"),
}


def _enum_ref(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUM_VALUES[name], name=name, create_type=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def _profile_fk(table_name: str) -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(
        ["profile_id"],
        ["profiles.id"],
        name=f"fk_{table_name}_profile_id_profiles",
        ondelete="CASCADE",
    )


def _end_after_start(table_name: str) -> sa.CheckConstraint:
    return sa.CheckConstraint(
        "end_year IS NULL OR end_year >= start_year",
        name=f"ck_{table_name}_end_after_start",
    )


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUM_VALUES.items():
        sa.Enum(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("orcid_id", sa.String(length=19), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False, server_default=sa.text("''")),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("orcid_access_token", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("orcid_id", name="uq_users_orcid_id"),
    )

    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(length=120), nullable=False),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("bio", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("profile_photo", sa.Text(), nullable=True),
        sa.Column("current_position", sa.String(length=255), nullable=True),
        sa.Column("current_institution", sa.String(length=255), nullable=True),
        sa.Column("current_department", sa.String(length=255), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("orcid_id", sa.String(length=19), nullable=True),
        sa.Column("last_orcid_sync", sa.DateTime(timezone=True), nullable=True),
        sa.Column("website", sa.Text(), nullable=True),
        sa.Column(
            "template",
            _enum_ref("profile_template"),
            nullable=False,
            server_default=sa.text("'minimal'"),
        ),
        sa.Column(
            "visibility",
            _enum_ref("profile_visibility"),
            nullable=False,
            server_default=sa.text("'public'"),
        ),
        sa.Column("custom_domain", sa.String(length=255), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_profiles_user_id_users",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_profiles"),
        sa.UniqueConstraint("user_id", name="uq_profiles_user_id"),
        sa.UniqueConstraint("username", name="uq_profiles_username"),
    )
    op.create_index(
        "ix_profiles_visibility_published",
        "profiles",
        ["visibility", "published_at"],
        unique=False,
    )

    op.create_table(
        "publications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column(
            "authors",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("journal", sa.Text(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("doi", sa.String(length=255), nullable=True),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("citation_count", sa.Integer(), nullable=True),
        sa.Column(
            "type",
            _enum_ref("publication_type"),
            nullable=False,
            server_default=sa.text("'journal-article'"),
        ),
        sa.Column("abstract", sa.Text(), nullable=True),
        sa.Column(
            "keywords",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("orcid_work_id", sa.String(length=32), nullable=True),
        *_timestamps(),
        _profile_fk("publications"),
        sa.PrimaryKeyConstraint("id", name="pk_publications"),
        sa.UniqueConstraint(
            "profile_id",
            "orcid_work_id",
            name="uq_publications_profile_orcid_work",
        ),
    )
    op.create_index(
        "ix_publications_profile_year",
        "publications",
        ["profile_id", "year"],
        unique=False,
    )

    op.create_table(
        "education",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("institution", sa.String(length=255), nullable=False),
        sa.Column("degree", sa.String(length=255), nullable=False),
        sa.Column("field", sa.String(length=255), nullable=False),
        sa.Column("start_year", sa.Integer(), nullable=False),
        sa.Column("end_year", sa.Integer(), nullable=True),
        sa.Column("current", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        _profile_fk("education"),
        _end_after_start("education"),
        sa.PrimaryKeyConstraint("id", name="pk_education"),
    )

    op.create_table(
        "positions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("institution", sa.String(length=255), nullable=False),
        sa.Column("department", sa.String(length=255), nullable=True),
        sa.Column("start_year", sa.Integer(), nullable=False),
        sa.Column("end_year", sa.Integer(), nullable=True),
        sa.Column("current", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        _profile_fk("positions"),
        _end_after_start("positions"),
        sa.PrimaryKeyConstraint("id", name="pk_positions"),
    )

    op.create_table(
        "awards",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("organization", sa.String(length=255), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("amount", sa.String(length=64), nullable=True),
        *_timestamps(),
        _profile_fk("awards"),
        sa.PrimaryKeyConstraint("id", name="pk_awards"),
    )

    op.create_table(
        "grants",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("agency", sa.String(length=255), nullable=False),
        sa.Column("role", _enum_ref("grant_role"), nullable=False),
        sa.Column("start_year", sa.Integer(), nullable=False),
        sa.Column("end_year", sa.Integer(), nullable=True),
        sa.Column("amount", sa.String(length=64), nullable=True),
        sa.Column("status", _enum_ref("grant_status"), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        _profile_fk("grants"),
        _end_after_start("grants"),
        sa.PrimaryKeyConstraint("id", name="pk_grants"),
    )

    op.create_table(
        "social_links",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("platform", sa.String(length=64), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        *_timestamps(),
        _profile_fk("social_links"),
        sa.PrimaryKeyConstraint("id", name="pk_social_links"),
    )

    for table_name in ("education", "positions", "awards", "grants", "social_links"):
        op.create_index(
            f"ix_{table_name}_profile_id",
            table_name,
            ["profile_id"],
            unique=False,
        )


def downgrade() -> None:
    for table_name in ("social_links", "grants", "awards", "positions", "education"):
        op.drop_index(f"ix_{table_name}_profile_id", table_name=table_name)
        op.drop_table(table_name)
    op.drop_index("ix_publications_profile_year", table_name="publications")
    op.drop_table("publications")
    op.drop_index("ix_profiles_visibility_published", table_name="profiles")
    op.drop_table("profiles")
    op.drop_table("users")

    bind = op.get_bind()
    for name in reversed(list(ENUM_VALUES)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
