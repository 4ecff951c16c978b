from fastapi import APIRouter

from chronos.api.v1 import auth, calendars, categories, events, health, invites, users


api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(calendars.router, prefix="/calendars", tags=["calendars"])
api_router.include_router(categories.router, prefix="", tags=["categories"])
api_router.include_router(events.router, prefix="", tags=["events"])
api_router.include_router(invites.router, prefix="", tags=["invites"])
