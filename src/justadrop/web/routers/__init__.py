from justadrop.web.routers.auth import router as auth_router
from justadrop.web.routers.health import router as health_router
from justadrop.web.routers.moderator_auth import router as moderator_auth_router
from justadrop.web.routers.moderators import router as moderators_router
from justadrop.web.routers.organizations import router as organizations_router

__all__ = [
    "auth_router",
    "health_router",
    "moderator_auth_router",
    "moderators_router",
    "organizations_router",
]
