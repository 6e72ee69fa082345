from fastapi import APIRouter

from artifact_review.api.api_v1.endpoints import artifacts, auth, settings, users, versions

api_router = APIRouter()
api_router.include_router(auth.router, tags=["auth"])
api_router.include_router(users.router, tags=["users"])
api_router.include_router(settings.router, tags=["settings"])
api_router.include_router(artifacts.router, tags=["artifacts"])
api_router.include_router(versions.router, tags=["versions"])
