"""HTTP surface: routers, request pipeline stages and error mapping."""

from fastapi import APIRouter

from rolegate.api.routes import auth, health, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
