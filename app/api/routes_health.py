from fastapi import APIRouter

from app.core.time import utc_now_iso

router = APIRouter()


@router.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok", "server_time": utc_now_iso()}
