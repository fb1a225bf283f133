import inspect
import json
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Sequence

import structlog
from google import genai
from google.genai import types
from langchain_core.prompts import ChatPromptTemplate
from pydantic import ValidationError

from catalyst.backend.config import get_settings
from catalyst.backend.errors import ParseError, UpstreamError
from catalyst.backend.schemas import AIAnalysis, CATEGORIES, COMPLEXITIES, ChatMessage

log = structlog.get_logger()


def strip_markdown_json(content: str) -> str:
    """Remove markdown code block markers from JSON responses."""
    if not content:
        return content

    content = content.strip()

    if content.lower().startswith("```json"):
        content = content[7:]
    elif content.startswith("```"):
        content = content[3:]

    if content.endswith("```"):
        content = content[:-3]

    return content.strip()


# --- Provider response normalization ---
# A generation response exposes its text in one of three ways: a plain
# string attribute, an accessor (sync or async), or only through
# candidates[0].content.parts.


def _get(obj: Any, key: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _candidate_parts(resp: Any) -> Optional[List[Any]]:
    candidates = _get(resp, "candidates")
    if not candidates:
        return None
    content = _get(candidates[0], "content")
    parts = _get(content, "parts") if content is not None else None
    return list(parts) if isinstance(parts, (list, tuple)) else None


def response_shape(resp: Any) -> str:
    text = _get(resp, "text")
    if isinstance(text, str):
        return "text"
    if callable(text):
        return "accessor"
    if _candidate_parts(resp) is not None:
        return "parts"
    return "empty"


async def _from_text(resp: Any) -> str:
    return _get(resp, "text")


async def _from_accessor(resp: Any) -> str:
    value = _get(resp, "text")()
    if inspect.isawaitable(value):
        value = await value
    return value if isinstance(value, str) else ""


async def _from_parts(resp: Any) -> str:
    return "".join(_get(part, "text") or "" for part in _candidate_parts(resp))


async def _empty(resp: Any) -> str:
    return ""


_EXTRACTORS: Dict[str, Callable[[Any], Any]] = {
    "text": _from_text,
    "accessor": _from_accessor,
    "parts": _from_parts,
    "empty": _empty,
}


async def response_text(resp: Any) -> str:
    """Normalize any known provider response shape to a plain string."""
    return await _EXTRACTORS[response_shape(resp)](resp)


# --- Prompts & schema ---

ANALYSIS_PROMPT = ChatPromptTemplate.from_template(
    """
You are a project intake assistant for a software and hardware development studio.
Analyze the following project description and return strict JSON with exactly these keys:
{{"summary": str, "category": str, "estimatedComplexity": str}}

- summary: 1-2 sentences describing what the client wants built.
- category: one of {categories}.
- estimatedComplexity: one of {complexities}.

Project description:
{description}
    """
)

ANALYSIS_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "summary": types.Schema(type=types.Type.STRING),
        "category": types.Schema(type=types.Type.STRING, enum=list(CATEGORIES)),
        "estimatedComplexity": types.Schema(type=types.Type.STRING, enum=list(COMPLEXITIES)),
    },
    required=["summary", "category", "estimatedComplexity"],
)


def build_transcript(messages: Sequence[ChatMessage]) -> str:
    return "\n".join(
        f"{'User' if m.role == 'user' else 'Assistant'}: {m.content}" for m in messages
    )


def parse_analysis(raw: str) -> AIAnalysis:
    cleaned = strip_markdown_json(raw)
    if not cleaned:
        raise ParseError("Analysis response was empty")
    try:
        data = json.loads(cleaned)
        return AIAnalysis(**data)
    except (json.JSONDecodeError, TypeError, ValidationError) as exc:
        raise ParseError(f"Analysis response did not match schema: {exc}") from exc


class GeminiClient:
    """Thin async wrapper over the google-genai client."""

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash", client: Any = None) -> None:
        self.model = model
        self._client = client or genai.Client(api_key=api_key)

    async def _generate(self, contents: str, config: Optional[types.GenerateContentConfig] = None) -> str:
        try:
            resp = await self._client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            )
            return await response_text(resp)
        except Exception as exc:  # noqa: BLE001
            log.error("gemini_call_failed", model=self.model, error=str(exc))
            raise UpstreamError("AI provider call failed") from exc

    async def analyze(self, description: str) -> AIAnalysis:
        prompt = ANALYSIS_PROMPT.format(
            description=description,
            categories=", ".join(CATEGORIES),
            complexities=", ".join(COMPLEXITIES),
        )
        raw = await self._generate(
            prompt,
            types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=ANALYSIS_SCHEMA,
                temperature=0.6,
                max_output_tokens=500,
            ),
        )
        log.info("analysis_llm_raw_response", content=raw[:500] if raw else "EMPTY")
        analysis = parse_analysis(raw)
        log.info(
            "analysis_complete",
            category=analysis.category,
            complexity=analysis.estimated_complexity,
        )
        return analysis

    async def chat(self, messages: Sequence[ChatMessage]) -> str:
        reply = await self._generate(build_transcript(messages))
        if not reply.strip():
            raise UpstreamError("AI provider returned an empty reply")
        log.info("chat_reply", turns=len(messages), reply_chars=len(reply))
        return reply


@lru_cache(maxsize=1)
def get_ai_client() -> Optional[GeminiClient]:
    """Process-wide Gemini client, or None when no credential is configured."""
    settings = get_settings()
    if not settings.gemini_api_key:
        return None
    return GeminiClient(api_key=settings.gemini_api_key, model=settings.gemini_model)
