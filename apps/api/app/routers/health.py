# apps/api/app/routers/health.py
from fastapi import APIRouter

router = APIRouter(prefix="", tags=["health"])


@router.get("/health")
def health():
    return {"status": "ok"}
