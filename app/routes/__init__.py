from app.routes.access import router as access_router
from app.routes.admin import router as admin_router
from app.routes.ai import router as ai_router
from app.routes.analytics import router as analytics_router
from app.routes.blog import router as blog_router
from app.routes.cache import router as cache_router
from app.routes.console import router as console_router
from app.routes.user import router as user_router

__all__ = [
    "access_router",
    "admin_router",
    "ai_router",
    "analytics_router",
    "blog_router",
    "cache_router",
    "console_router",
    "user_router",
]
