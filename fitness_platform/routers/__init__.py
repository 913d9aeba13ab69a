from fastapi import APIRouter

from . import auth, health, otp


def get_api_router() -> APIRouter:
    router = APIRouter()
    router.include_router(health.router)
    router.include_router(auth.router)
    router.include_router(otp.router)
    return router
