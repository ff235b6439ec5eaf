from fastapi import APIRouter, HTTPException, Request

from controllers.status_controller import get_status

router = APIRouter(prefix="/api")


@router.get("/status")
async def status_route(request: Request):
    """Rate limiter usage, token spend, active sessions and disk usage."""
    try:
        return await get_status(request)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
