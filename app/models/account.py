"""Account-side tables of the main relational store."""

from datetime import datetime
from typing import Any, cast

from sqlalchemy import JSON, DateTime
from sqlalchemy.orm import declared_attr
from sqlmodel import Column, Field, SQLModel, String

from app.models.project import uuid_column


class AuthorizedUserDB(SQLModel, table=True):
    """An email allowed to sign up, optionally linked to an existing user."""

    __tablename__ = cast("declared_attr[str]", "authorized_users")

    id: str = Field(sa_column=uuid_column("id", primary_key=True))
    email: str = Field(sa_column=Column(String, nullable=False, unique=True))
    company_name: str = Field(sa_column=Column(String, nullable=False))
    user_id: str | None = Field(default=None, sa_column=uuid_column("user_id", index=True))
    created_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))


class FormSubmissionDB(SQLModel, table=True):
    """A free-analysis request left through the public website form."""

    __tablename__ = cast("declared_attr[str]", "free_analysis_submissions")

    id: str = Field(sa_column=uuid_column("id", primary_key=True))
    email: str = Field(default="", sa_column=Column(String))
    website: str | None = None
    name: str | None = None
    message: str | None = None
    ip_address: str | None = None
    status: str | None = None
    notes: str | None = None
    processed_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    created_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    updated_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))


class AccountDB(SQLModel, table=True):
    """Billing account of a user; ``plan_type`` is ``free`` or ``pro``."""

    __tablename__ = cast("declared_attr[str]", "accounts")

    id: str = Field(sa_column=uuid_column("id", primary_key=True))
    user_id: str = Field(sa_column=uuid_column("user_id", index=True))
    plan_type: str | None = None
    credits: float | None = None
    created_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    updated_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))


class UserInformationDB(SQLModel, table=True):
    """Profile details a user filled in during onboarding."""

    __tablename__ = cast("declared_attr[str]", "user_information")

    id: str = Field(sa_column=uuid_column("id", primary_key=True))
    user_id: str = Field(sa_column=uuid_column("user_id", index=True))
    company_name: str | None = None
    role: str | None = None
    phone: str | None = None
    details: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    created_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))


class UserActivityDB(SQLModel, table=True):
    """One recorded user action; the newest row per user is their last activity."""

    __tablename__ = cast("declared_attr[str]", "user_activity")

    id: str = Field(sa_column=uuid_column("id", primary_key=True))
    user_id: str = Field(sa_column=uuid_column("user_id", index=True))
    user_email: str | None = None
    name: str | None = None
    provider: str | None = None
    created_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), index=True))
