import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from ..core.chat import ChatServices, stream_ai
from ..core.streaming import MEDIA_TYPE
from ..types import AiRequest
from .deps import MISSING_RPC_MESSAGE, get_chat_services

router = APIRouter()
_logger = logging.getLogger(__name__)


@router.post("/ai")
async def ai_endpoint(
    request: Request,
    services: ChatServices = Depends(get_chat_services),
):
    """Answer a wallet question as a text / structured / done frame stream."""

    try:
        payload = AiRequest.model_validate(await request.json())
    except ValueError as exc:
        _logger.warning("Rejected /ai body: %s", exc)
        return JSONResponse({"error": f"Invalid request body: {exc}"}, status_code=500)

    if not services.alchemy.base_url:
        return JSONResponse({"error": MISSING_RPC_MESSAGE}, status_code=500)

    return StreamingResponse(
        stream_ai(payload.query, payload.address, services),
        media_type=MEDIA_TYPE,
        headers={"Cache-Control": "no-cache, no-transform", "Connection": "keep-alive"},
    )
