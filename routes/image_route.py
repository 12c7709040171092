from fastapi import APIRouter, HTTPException, Request

from controllers.relay_controller import relay_image
from exceptions.exceptions import ProxyError
from models.api_models import ImageRelayRequest

router = APIRouter()


@router.post("/api/image")
async def post_image(request: Request, payload: ImageRelayRequest):
	"""Return the generated image bytes for the given prompt."""
	try:
		return await relay_image(request, payload)
	except (HTTPException, ProxyError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
