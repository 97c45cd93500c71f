"""Project-side tables of the main relational store."""

from datetime import datetime
from typing import cast

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import declared_attr
from sqlmodel import Column, Field, SQLModel, String


def uuid_column(name: str, *, primary_key: bool = False, index: bool = False) -> Column:
    """UUID column exposed to Python as a plain string."""
    return Column(name, Uuid(as_uuid=False), primary_key=primary_key, index=index)


class ProjectDB(SQLModel, table=True):
    """A customer project (one site being managed)."""

    __tablename__ = cast("declared_attr[str]", "projects")

    id: str = Field(sa_column=uuid_column("id", primary_key=True))
    user_id: str | None = Field(default=None, sa_column=uuid_column("user_id", index=True))
    name: str = Field(sa_column=Column(String, nullable=False))
    url: str = Field(default="", sa_column=Column(String))
    brand_name: str | None = None
    business_type: str | None = None
    is_active: bool = True
    visitors: int = 0
    created_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    updated_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))


class ProjectImageDB(SQLModel, table=True):
    """An image uploaded to a project's media library."""

    __tablename__ = cast("declared_attr[str]", "project_images")

    id: str = Field(sa_column=uuid_column("id", primary_key=True))
    project_id: str | None = Field(default=None, sa_column=uuid_column("project_id", index=True))
    user_id: str | None = Field(default=None, sa_column=uuid_column("user_id", index=True))
    original_filename: str | None = None
    description: str | None = None
    category: str | None = None
    image_url: str | None = None
    file_size: int | None = None
    is_active: bool = True
    created_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))


class GscAccountDB(SQLModel, table=True):
    """A Google Search Console connection; presence means the project is connected."""

    __tablename__ = cast("declared_attr[str]", "gsc_accounts")

    id: str = Field(sa_column=uuid_column("id", primary_key=True))
    project_id: str = Field(sa_column=uuid_column("project_id", index=True))
