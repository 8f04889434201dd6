"""API v1 routes."""

from fastapi import APIRouter

from cacophony.api.v1 import auth, health, members, posts, roles, rooms, servers, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(servers.router, prefix="/servers", tags=["servers"])
router.include_router(rooms.router, prefix="/servers", tags=["rooms"])
router.include_router(roles.router, prefix="/servers", tags=["roles"])
router.include_router(members.router, prefix="/servers", tags=["members"])
router.include_router(posts.router, prefix="/servers", tags=["posts"])
