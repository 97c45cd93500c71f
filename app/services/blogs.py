"""Blog listing with enrichment, detail and edits, and the soft-delete lifecycle."""

from logging import getLogger
from typing import Any

from bson import ObjectId

from app.configs import CacheConfig, file_logger
from app.errors import ConflictError, NotFoundError, UpstreamError, ValidationError
from app.managers import CacheManager, cache_manager
from app.managers.cache_manager import BLOGS_PREFIX
from app.repositories import BlogRepository
from app.schemas import BlogUpdate, PageRequest, Pagination
from app.schemas.details import UNKNOWN_USER
from app.services.enrichment import Resolver, join
from app.utils import iso_now, utc_now

logger = file_logger(getLogger(__name__))

BLOG_LIST_PREFIX = f"{BLOGS_PREFIX}list"


def parse_blog_id(blog_id: str) -> ObjectId:
    if not ObjectId.is_valid(blog_id):
        raise ValidationError("Invalid blog ID format")
    return ObjectId(blog_id)


class BlogService:
    """
    Blog operations for the admin dashboard.

    Listing pages are cached for ``CacheConfig.blog_list_ttl`` seconds and
    every state change drops all ``blogs:`` keys.
    """

    def __init__(
        self,
        repo: BlogRepository,
        resolver: Resolver,
        cache: CacheManager | None = None,
    ) -> None:
        self.repo = repo
        self.resolver = resolver
        self.cache = cache or cache_manager
        self.ttl = CacheConfig().blog_list_ttl

    async def list_blogs(self, page: PageRequest) -> dict[str, Any]:
        key = CacheManager.key(
            BLOG_LIST_PREFIX,
            {
                "page": page.page,
                "limit": page.limit,
                "search": page.search,
                "sort": page.sort_field,
                "order": page.sort_order,
            },
        )
        return await self.cache.get_or_set(key, lambda: self._load_page(page), self.ttl)

    async def _load_page(self, page: PageRequest) -> dict[str, Any]:
        records, total = await self.repo.list_page(
            search=page.search,
            sort_field=page.sort_field,
            sort_order=page.sort_order,
            offset=page.offset,
            limit=page.limit,
        )
        lookups = await self.resolver.resolve(records, projects=True, project_owners=True)
        blogs = join(
            records,
            lookups,
            ("project", "user"),
            project_fallback=True,
            user_fallback=True,
        )
        with_users = sum(
            1
            for blog in blogs
            if blog["user_details"]["id"] and blog["user_details"]["name"] != UNKNOWN_USER
        )
        logger.info(f"Listed {len(blogs)} of {total} blogs, {with_users} with user details")
        return {
            "success": True,
            "data": blogs,
            "pagination": Pagination.for_request(page, total).to_response(),
            "meta": {
                "search": page.search or None,
                "sort": page.sort_field,
                "order": page.sort_order,
                "blogs_with_user_details": with_users,
                "timestamp": iso_now(),
            },
        }

    async def get_blog(self, blog_id: str) -> dict[str, Any]:
        """The full blog document, content included."""
        blog = await self.repo.get(parse_blog_id(blog_id))
        if blog is None:
            raise NotFoundError("Blog post not found")
        return {"success": True, "data": blog, "meta": {"timestamp": iso_now()}}

    async def update_blog(self, blog_id: str, body: BlogUpdate) -> dict[str, Any]:
        """
        Replace the title, content or word count of a blog.

        Raises:
            ValidationError: ``blog_id`` is not an ObjectId
            NotFoundError: No such blog
        """
        fields: dict[str, Any] = {"updated_at": utc_now()}
        if body.title:
            fields["title"] = body.title
        if body.content:
            fields["content"] = body.content
        if body.word_count is not None:
            fields["word_count"] = body.word_count

        matched, modified = await self.repo.edit(parse_blog_id(blog_id), fields)
        if not matched:
            raise NotFoundError("Blog post not found")
        self.cache.invalidate_pattern(BLOGS_PREFIX)
        logger.info(f"Blog {blog_id} updated: {sorted(fields)}")
        return {
            "success": True,
            "message": "Blog post updated successfully",
            "meta": {"timestamp": iso_now(), "modifiedCount": modified},
        }

    async def list_for_user(self, user_id: str, page: PageRequest) -> dict[str, Any]:
        records, total = await self.repo.list_for_user(user_id, offset=page.offset, limit=page.limit)
        return {
            "success": True,
            "data": records,
            "pagination": Pagination.for_request(page, total).to_response(),
        }

    async def delete(self, blog_id: str, deleted_by: str) -> dict[str, Any]:
        """
        Soft delete a blog.

        Raises:
            ValidationError: ``blog_id`` is not an ObjectId
            NotFoundError: No such blog
            ConflictError: The blog is already deleted
        """
        oid = parse_blog_id(blog_id)
        blog = await self.repo.get(oid)
        if blog is None:
            raise NotFoundError("Blog not found")
        if blog.get("is_active") is False:
            raise ConflictError("Blog is already deleted")

        deleted_at = utc_now()
        modified = await self.repo.soft_delete(oid, deleted_by=deleted_by, deleted_at=deleted_at)
        if not modified:
            raise UpstreamError(f"soft delete of blog {blog_id} modified nothing", "Failed to delete blog")
        self.cache.invalidate_pattern(BLOGS_PREFIX)
        logger.info(f"Blog {blog_id} soft deleted by {deleted_by}")
        return {
            "success": True,
            "message": "Blog deleted successfully",
            "blog_id": blog_id,
            "deleted_at": deleted_at,
            "deleted_by": deleted_by,
        }

    async def restore(self, blog_id: str, restored_by: str) -> dict[str, Any]:
        """
        Restore a soft-deleted blog.

        Raises:
            ValidationError: ``blog_id`` is not an ObjectId
            NotFoundError: No such blog
            ConflictError: The blog is already active
        """
        oid = parse_blog_id(blog_id)
        blog = await self.repo.get(oid)
        if blog is None:
            raise NotFoundError("Blog not found")
        if blog.get("is_active") is not False:
            raise ConflictError("Blog is already active")

        restored_at = utc_now()
        modified = await self.repo.restore(oid, restored_by=restored_by, restored_at=restored_at)
        if not modified:
            raise UpstreamError(f"restore of blog {blog_id} modified nothing", "Failed to restore blog")
        self.cache.invalidate_pattern(BLOGS_PREFIX)
        logger.info(f"Blog {blog_id} restored by {restored_by}")
        return {
            "success": True,
            "message": "Blog restored successfully",
            "blog_id": blog_id,
            "restored_at": restored_at,
            "restored_by": restored_by,
        }
