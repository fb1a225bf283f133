import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from starlette.concurrency import run_in_threadpool

from catalyst.backend.config import Settings, get_settings
from catalyst.backend.errors import ConfigurationError
from catalyst.backend.schemas import OkResponse, SubmissionRequest
from catalyst.backend.services import (
    Notifier,
    SheetAppender,
    build_submission_row,
    get_notifier,
    get_sheet_appender,
    sanitize_for_logging,
)

log = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["submit"])


@router.post("/submit", response_model=OkResponse)
async def submit_project(
    payload: SubmissionRequest,
    background_tasks: BackgroundTasks,
    sheet: SheetAppender = Depends(get_sheet_appender),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> OkResponse:
    """Persist the submission row, then notify by email after responding.

    The row append is synchronous with the request: if it fails the
    submission did not happen and no email goes out. Emails are queued as a
    background task that runs after the response is sent.
    """
    row = build_submission_row(payload)

    try:
        await run_in_threadpool(sheet.append, row)
    except Exception as exc:  # noqa: BLE001
        log.error(
            "submission_persist_failed",
            error_type=type(exc).__name__,
            error=sanitize_for_logging(str(exc)),
            project_type=payload.project_type,
        )
        if not settings.is_production:
            detail = f"Submit failed: {exc}"
        elif isinstance(exc, ConfigurationError):
            detail = "Submit failed: server not configured"
        else:
            detail = "Submit failed"
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)

    log.info(
        "submission_persisted",
        project_type=payload.project_type,
        has_analysis=payload.ai_analysis is not None,
        title=sanitize_for_logging(payload.project_title, max_length=80),
    )

    background_tasks.add_task(notifier.dispatch, payload)
    return OkResponse(ok=True)
