"""Repositories for access control, form intake and account tables."""

from datetime import datetime

from sqlalchemy import select

from app.models import (
    AccountDB,
    AuthorizedUserDB,
    FormSubmissionDB,
    UserActivityDB,
    UserInformationDB,
)
from app.repositories.base import BaseRepository, Record


class AuthorizedUserRepository(BaseRepository[AuthorizedUserDB]):
    """Sign-up allow-list, searchable by email and company name."""

    model = AuthorizedUserDB
    search_fields = ("email", "company_name")


class FormSubmissionRepository(BaseRepository[FormSubmissionDB]):
    """Free-analysis submissions, searchable by email and website."""

    model = FormSubmissionDB
    search_fields = ("email", "website")


class AccountRepository(BaseRepository[AccountDB]):
    model = AccountDB


class UserInformationRepository(BaseRepository[UserInformationDB]):
    model = UserInformationDB


class UserActivityRepository(BaseRepository[UserActivityDB]):
    model = UserActivityDB

    async def since(self, start: datetime) -> list[Record]:
        """Every activity recorded at or after ``start``, newest first."""
        statement = self._ordered(select(self.model).where(UserActivityDB.created_at >= start))
        rows = (await self._execute(statement)).scalars().all()
        return [row.model_dump() for row in rows]
