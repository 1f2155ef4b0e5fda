# API routes module
# Contains all API endpoint definitions

from .auth_routes import router as auth_router
from .expense_routes import router as expense_router
from .finance_routes import router as finance_router
from .notification_routes import router as notification_router
from .profile_routes import router as profile_router
from .project_routes import router as project_router
from .settings_routes import router as settings_router

__all__ = [
    "auth_router",
    "expense_router",
    "finance_router",
    "notification_router",
    "profile_router",
    "project_router",
    "settings_router",
]
