from fastapi import APIRouter

from slugline.api.v1 import posts, profiles
from slugline.core.metrics import snapshot as metrics_snapshot

api_router = APIRouter()

api_router.include_router(posts.router)
api_router.include_router(profiles.router)


@api_router.get("/health", tags=["health"])
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@api_router.get("/metrics", tags=["metrics"])
def metrics() -> dict:
    return metrics_snapshot()
