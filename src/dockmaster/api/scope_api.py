"""
Scope API - model-backed endpoints that turn a free-text request into a
Scenario document or a streamed narrative work order.
"""
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from ..llm.errors import ScopeError
from ..llm.scope_service import ScopeService, get_scope_service

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/scope", tags=["scope"])


class ScopeRequest(BaseModel):
    """Request body for both scope endpoints."""
    prompt: Optional[str] = None


def _require_prompt(req: Optional[ScopeRequest]) -> str:
    if req is None or not req.prompt or not req.prompt.strip():
        raise HTTPException(status_code=400, detail="Missing prompt")
    return req.prompt


@router.post("")
async def scope_request(req: Optional[ScopeRequest] = None, service: ScopeService = Depends(get_scope_service)):
    """Generate a complete Scenario for the prompt."""
    prompt = _require_prompt(req)
    try:
        result = await service.generate_scenario(prompt)
    except ScopeError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return result.to_dict()


@router.post("/stream")
async def scope_stream(req: Optional[ScopeRequest] = None, service: ScopeService = Depends(get_scope_service)):
    """Stream a plain-text work order for the prompt."""
    prompt = _require_prompt(req)
    chunks = service.stream_narrative(prompt)

    # The first chunk is awaited here so configuration and upstream
    # failures still become a status code.
    try:
        first = await anext(chunks)
    except StopAsyncIteration:
        first = ""
    except ScopeError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    async def body():
        if first:
            yield first
        try:
            async for chunk in chunks:
                yield chunk
        except ScopeError as e:
            logger.error("scope_stream_interrupted", error=str(e))
            yield f"\n\n[stream interrupted: {e.message}]"

    return StreamingResponse(body(), media_type="text/plain; charset=utf-8")
