from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from catalyst.backend.errors import ParseError, UpstreamError
from catalyst.backend.schemas import AIAnalysis, AnalyzeRequest, ChatRequest, ChatResponse
from catalyst.backend.services import GeminiClient, get_ai_client

log = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["ai"])


def _require_client(client: Optional[GeminiClient]) -> GeminiClient:
    if client is None:
        log.error("ai_not_configured", hint="set GEMINI_API_KEY")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="AI not configured")
    return client


@router.post("/analyze", response_model=AIAnalysis)
async def analyze_project(
    payload: AnalyzeRequest,
    ai: Optional[GeminiClient] = Depends(get_ai_client),
) -> AIAnalysis:
    """Summarize and classify a project description."""
    client = _require_client(ai)
    try:
        return await client.analyze(payload.description)
    except (UpstreamError, ParseError) as exc:
        log.error("analyze_failed", error_type=type(exc).__name__, error=str(exc))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Analyze failed")


@router.post("/chat", response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    ai: Optional[GeminiClient] = Depends(get_ai_client),
) -> ChatResponse:
    """Relay the full conversation and return the newest reply."""
    client = _require_client(ai)
    try:
        reply = await client.chat(payload.messages)
    except UpstreamError as exc:
        log.error("chat_failed", error=str(exc))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Chat failed")
    return ChatResponse(reply=reply)
