"""API route aggregation.

All routers registered here get mounted in main.py under /api.

Learn: Authentication is applied per route with the dependencies in
tokengate.auth.dependencies rather than per router: the auth router mixes
open routes (login, refresh, logout) with protected ones (/auth/me), and
the users router mixes role-gated and soft-auth routes.
"""

from fastapi import APIRouter

from tokengate.api.auth import router as auth_router
from tokengate.api.health import router as health_router
from tokengate.api.users import router as users_router

api_router = APIRouter(prefix="/api")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(users_router, tags=["users"])
