# routers/__init__.py

from fastapi import APIRouter

from .user_roles import router as user_roles_router
from .users import router as users_router
from .clients import router as clients_router
from .leads import router as leads_router
from .jobs import router as jobs_router
from .products import router as products_router
from .proposals import router as proposals_router
from .activity_logs import router as activity_logs_router
from .health import router as health_router


api_router = APIRouter()

api_router.include_router(user_roles_router)
api_router.include_router(users_router)
api_router.include_router(clients_router)
api_router.include_router(leads_router)
api_router.include_router(jobs_router)
api_router.include_router(products_router)
api_router.include_router(proposals_router)
api_router.include_router(activity_logs_router)
api_router.include_router(health_router)

__all__ = ["api_router"]
