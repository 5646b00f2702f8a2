from fastapi import APIRouter

from chatlink.api.auth import router as auth_router
from chatlink.api.chats import router as chats_router
from chatlink.api.friends import router as friends_router
from chatlink.api.notifications import router as notifications_router
from chatlink.api.profile import router as profile_router

router = APIRouter()

router.include_router(auth_router, prefix="/auth", tags=["auth"])
router.include_router(profile_router)
router.include_router(friends_router)
router.include_router(chats_router)
router.include_router(notifications_router)


@router.get("/", tags=["root"])
def read_root() -> dict[str, str]:
    return {"message": "Welcome to the ChatLink API"}
