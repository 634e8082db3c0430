from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request):
    """Проверка работоспособности"""
    return {
        "status": "ok",
        "configured": request.app.state.settings.is_configured
    }
