from fastapi import APIRouter, HTTPException, Request

from controllers.relay_controller import relay_search
from exceptions.exceptions import ProxyError
from models.api_models import SearchRequest

router = APIRouter()


@router.post("/api/search")
async def post_search(request: Request, payload: SearchRequest):
    """Run a web search and return the provider results."""
    try:
        return await relay_search(request, payload.query)
    except (HTTPException, ProxyError):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
