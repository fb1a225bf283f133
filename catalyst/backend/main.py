from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from catalyst.backend.config import get_settings
from catalyst.backend.routers import ai, submit
from catalyst.backend.services import FixedWindowRateLimiter, get_ai_client, get_notifier, redact_smtp_config

structlog.configure(processors=[structlog.processors.TimeStamper(fmt="iso"), structlog.processors.JSONRenderer()])
log = structlog.get_logger()

settings = get_settings()

app = FastAPI(title="Project Catalyst API", version="1.0.0")

app.state.rate_limiter = FixedWindowRateLimiter(
    max_requests=settings.rate_limit_max_requests,
    window_seconds=settings.rate_limit_window_seconds,
)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


@app.middleware("http")
async def rate_limit_api(request: Request, call_next):
    if not request.url.path.startswith("/api/"):
        return await call_next(request)

    key = request.client.host if request.client else "anonymous"
    limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
    if not limiter.hit(key):
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"detail": "Too many requests, please try again later."},
            headers={
                "Retry-After": str(limiter.retry_after(key)),
                "X-RateLimit-Limit": str(limiter.max_requests),
                "X-RateLimit-Remaining": "0",
            },
        )
    response = await call_next(request)
    usage = limiter.usage(key)
    response.headers["X-RateLimit-Limit"] = str(usage["limit"])
    response.headers["X-RateLimit-Remaining"] = str(usage["remaining"])
    return response


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.frontend_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {"loc": ("body",), "msg": "Invalid input"}
    path = [str(p) for p in first.get("loc", ()) if p != "body"]
    field = "body" if first.get("type") == "json_invalid" else ".".join(path) or "body"
    message = f"{field}: {first.get('msg', 'Invalid input')}"
    log.info("request_rejected", path=request.url.path, field=field, reason=first.get("type"))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": message})


@app.on_event("startup")
def on_startup() -> None:
    ai_client = get_ai_client()
    if ai_client is None:
        log.warning("gemini_api_key_missing", effect="/api/analyze and /api/chat disabled")
    notifier = get_notifier()
    if notifier.transport is None:
        log.warning("smtp_not_configured", smtp=redact_smtp_config(settings.smtp))
    log.info(
        "startup_complete",
        env=settings.app_env,
        origins=settings.frontend_origins,
        ai_enabled=ai_client is not None,
        email_enabled=notifier.transport is not None,
    )


@app.get("/api/health")
def healthcheck() -> dict[str, Any]:
    return {"ok": True}


@app.get("/", response_class=PlainTextResponse)
def root() -> str:
    return "Project Catalyst API running"


app.include_router(ai.router)
app.include_router(submit.router)
