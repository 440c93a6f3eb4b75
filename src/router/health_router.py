import time

from fastapi import APIRouter, Request

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
def health(request: Request):
    state = request.app.state
    settings = state.settings
    started_at = getattr(state, "started_at", None)
    dispatcher = getattr(state, "dispatcher", None)
    return {
        "status": "ok",
        "message": f"{settings.APP_NAME} API is running",
        "version": settings.APP_VERSION,
        "python_version": settings.python_version,
        "uptime_seconds": round(time.monotonic() - started_at, 1) if started_at else 0.0,
        "workers_in_flight": dispatcher.in_flight if dispatcher else 0,
    }
