"""Request bodies for the admin user, access, project and crawl endpoints."""

from datetime import datetime
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


class UserCreate(BaseModel):
    """New identity-provider user, created already confirmed."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    email: EmailStr
    password: str = Field(min_length=6)
    metadata: dict[str, Any] = Field(default_factory=dict)
    app_metadata: dict[str, Any] = Field(default_factory=dict, alias="appMetadata")


class UserUpdate(BaseModel):
    """Partial update of an identity-provider user; omitted fields are left alone."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=6)
    metadata: dict[str, Any] | None = None
    app_metadata: dict[str, Any] | None = Field(default=None, alias="appMetadata")

    def attributes(self) -> dict[str, Any]:
        """Body of the admin update call, keyed the way the provider names them."""
        values = self.model_dump(exclude_none=True)
        if "metadata" in values:
            values["user_metadata"] = values.pop("metadata")
        return values


class CrawlAction(BaseModel):
    """``POST /crawl`` body: start a crawl or cancel a running one."""

    action: str
    seed_url: str | None = None
    max_pages: int | None = Field(default=None, gt=0)
    use_proxy: bool = True
    respect_robots: bool = True
    task_id: str | None = None


class AuthorizedUserCreate(BaseModel):
    """Allow-list entry; the email is stored lower-cased."""

    email: EmailStr
    company_name: str = Field(min_length=1)
    user_id: str | None = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("company_name")
    @classmethod
    def strip_company(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Company name is required")
        return value


class FormSubmissionUpdate(BaseModel):
    """Review fields of a form submission; anything else in the body is ignored."""

    model_config = ConfigDict(extra="ignore")

    status: str | None = None
    notes: str | None = None
    processed_at: datetime | None = None


class ProjectStatusUpdate(BaseModel):
    is_active: bool


class BlogUpdate(BaseModel):
    """Editable blog fields; at least a title or content is required."""

    title: str | None = None
    content: str | None = None
    word_count: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def require_text(self) -> Self:
        if not self.title and not self.content:
            raise ValueError("Title or content is required")
        return self
