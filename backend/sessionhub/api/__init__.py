from fastapi import APIRouter
from sessionhub.api import sessions
from sessionhub.api import profiles

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok"}


# Include sessions and profiles routers
router.include_router(sessions.router)
router.include_router(profiles.router)
