"""
Typed projections attached to listed records.

Every enriched record carries each applicable ``*_details`` key; the value
is one of these models (dumped to a dict) or ``None``, never absent.
"""

from typing import Any, Self

from pydantic import BaseModel

UNKNOWN_USER = "Unknown User"
UNKNOWN_PROJECT = "Unknown Project"
UNTITLED = "Untitled"


class UserDetails(BaseModel):
    id: str
    name: str
    email: str
    avatar: str | None = None

    @classmethod
    def placeholder(cls, user_id: str) -> Self:
        """Stand-in for a user whose lookup failed or who no longer exists."""
        return cls(id=user_id, name=UNKNOWN_USER, email="Unknown", avatar=None)

    @classmethod
    def from_identity(cls, user: dict[str, Any]) -> Self:
        metadata = user.get("user_metadata") or {}
        return cls(
            id=str(user["id"]),
            name=metadata.get("full_name") or metadata.get("name") or "Unknown",
            email=user.get("email") or "Unknown",
            avatar=metadata.get("avatar_url") or None,
        )


class ProjectDetails(BaseModel):
    id: str
    name: str
    url: str
    user_id: str

    @classmethod
    def placeholder(cls, project_id: str) -> Self:
        return cls(id=project_id, name=UNKNOWN_PROJECT, url="", user_id="")

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Self:
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            url=row.get("url") or "",
            user_id=str(row.get("user_id") or ""),
        )


class BlogDetails(BaseModel):
    id: str
    title: str
    status: str | None = None
    word_count: int | float | None = None

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Self:
        """
        Project a blog document.

        Titles stored as a list of revisions use the last one.
        """
        title = document.get("title")
        if isinstance(title, list):
            title = title[-1] if title else None
        return cls(
            id=str(document["_id"]),
            title=title if isinstance(title, str) and title else UNTITLED,
            status=document.get("status"),
            word_count=document.get("word_count"),
        )
