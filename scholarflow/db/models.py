from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from scholarflow.db.base import Base, TimestampMixin


class ProfileTemplateId(StrEnum):
    MINIMAL = "minimal"
    RESEARCH_FOCUSED = "research-focused"
    TEACHING_ORIENTED = "teaching-oriented"
    INDUSTRY_HYBRID = "industry-hybrid"


class ProfileVisibility(StrEnum):
    PUBLIC = "public"
    UNLISTED = "unlisted"
    PRIVATE = "private"


class PublicationType(StrEnum):
    JOURNAL_ARTICLE = "journal-article"
    BOOK = "book"
    BOOK_CHAPTER = "book-chapter"
    CONFERENCE_PAPER = "conference-paper"
    PREPRINT = "preprint"
    OTHER = "other"


class GrantRole(StrEnum):
    PI = "PI"
    CO_PI = "Co-PI"
    CO_I = "Co-I"
    OTHER = "Other"


class GrantStatus(StrEnum):
    ACTIVE = "Active"
    COMPLETED = "Completed"
    PENDING = "Pending"


def _db_enum(enum_cls: type[StrEnum], name: str) -> Enum:
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )


PROFILE_TEMPLATE_DB_ENUM = _db_enum(ProfileTemplateId, "profile_template")
PROFILE_VISIBILITY_DB_ENUM = _db_enum(ProfileVisibility, "profile_visibility")
PUBLICATION_TYPE_DB_ENUM = _db_enum(PublicationType, "publication_type")
GRANT_ROLE_DB_ENUM = _db_enum(GrantRole, "grant_role")
GRANT_STATUS_DB_ENUM = _db_enum(GrantStatus, "grant_status")


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    orcid_id: Mapped[str] = mapped_column(String(19), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, server_default=text("''"))
    email: Mapped[str | None] = mapped_column(String(255))
    orcid_access_token: Mapped[str | None] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("true")
    )


class Profile(TimestampMixin, Base):
    __tablename__ = "profiles"
    __table_args__ = (
        Index("ix_profiles_visibility_published", "visibility", "published_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    username: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255))
    bio: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    profile_photo: Mapped[str | None] = mapped_column(Text)
    current_position: Mapped[str | None] = mapped_column(String(255))
    current_institution: Mapped[str | None] = mapped_column(String(255))
    current_department: Mapped[str | None] = mapped_column(String(255))
    location: Mapped[str | None] = mapped_column(String(255))
    orcid_id: Mapped[str | None] = mapped_column(String(19))
    last_orcid_sync: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    website: Mapped[str | None] = mapped_column(Text)
    template: Mapped[ProfileTemplateId] = mapped_column(
        PROFILE_TEMPLATE_DB_ENUM,
        nullable=False,
        server_default=text("'minimal'"),
    )
    visibility: Mapped[ProfileVisibility] = mapped_column(
        PROFILE_VISIBILITY_DB_ENUM,
        nullable=False,
        server_default=text("'public'"),
    )
    custom_domain: Mapped[str | None] = mapped_column(String(255))
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class Publication(TimestampMixin, Base):
    __tablename__ = "publications"
    __table_args__ = (
        UniqueConstraint(
            "profile_id",
            "orcid_work_id",
            name="uq_publications_profile_orcid_work",
        ),
        Index("ix_publications_profile_year", "profile_id", "year"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    authors: Mapped[list[str]] = mapped_column(
        JSONB, nullable=False, server_default=text("'[]'::jsonb")
    )
    journal: Mapped[str | None] = mapped_column(Text)
    year: Mapped[int | None] = mapped_column(Integer)
    doi: Mapped[str | None] = mapped_column(String(255))
    url: Mapped[str | None] = mapped_column(Text)
    citation_count: Mapped[int | None] = mapped_column(Integer)
    type: Mapped[PublicationType] = mapped_column(
        PUBLICATION_TYPE_DB_ENUM,
        nullable=False,
        server_default=text("'journal-article'"),
    )
    abstract: Mapped[str | None] = mapped_column(Text)
    keywords: Mapped[list[str]] = mapped_column(
        JSONB, nullable=False, server_default=text("'[]'::jsonb")
    )
    orcid_work_id: Mapped[str | None] = mapped_column(String(32))


class Education(TimestampMixin, Base):
    __tablename__ = "education"
    __table_args__ = (
        CheckConstraint(
            "end_year IS NULL OR end_year >= start_year",
            name="end_after_start",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    institution: Mapped[str] = mapped_column(String(255), nullable=False)
    degree: Mapped[str] = mapped_column(String(255), nullable=False)
    field: Mapped[str] = mapped_column(String(255), nullable=False)
    start_year: Mapped[int] = mapped_column(Integer, nullable=False)
    end_year: Mapped[int | None] = mapped_column(Integer)
    current: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    description: Mapped[str | None] = mapped_column(Text)


class Position(TimestampMixin, Base):
    __tablename__ = "positions"
    __table_args__ = (
        CheckConstraint(
            "end_year IS NULL OR end_year >= start_year",
            name="end_after_start",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    institution: Mapped[str] = mapped_column(String(255), nullable=False)
    department: Mapped[str | None] = mapped_column(String(255))
    start_year: Mapped[int] = mapped_column(Integer, nullable=False)
    end_year: Mapped[int | None] = mapped_column(Integer)
    current: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    description: Mapped[str | None] = mapped_column(Text)


class Award(TimestampMixin, Base):
    __tablename__ = "awards"

    id: Mapped[int] = mapped_column(primary_key=True)
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    organization: Mapped[str] = mapped_column(String(255), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    amount: Mapped[str | None] = mapped_column(String(64))


class Grant(TimestampMixin, Base):
    __tablename__ = "grants"
    __table_args__ = (
        CheckConstraint(
            "end_year IS NULL OR end_year >= start_year",
            name="end_after_start",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    agency: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[GrantRole] = mapped_column(GRANT_ROLE_DB_ENUM, nullable=False)
    start_year: Mapped[int] = mapped_column(Integer, nullable=False)
    end_year: Mapped[int | None] = mapped_column(Integer)
    amount: Mapped[str | None] = mapped_column(String(64))
    status: Mapped[GrantStatus] = mapped_column(GRANT_STATUS_DB_ENUM, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)


class SocialLink(TimestampMixin, Base):
    __tablename__ = "social_links"

    id: Mapped[int] = mapped_column(primary_key=True)
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    platform: Mapped[str] = mapped_column(String(64), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255))
