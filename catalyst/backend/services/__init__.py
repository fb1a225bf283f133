from .gemini import GeminiClient, get_ai_client, response_text, strip_markdown_json
from .sheets import SheetAppender, build_submission_row, extract_spreadsheet_id, get_sheet_appender
from .notifications import NotificationStatus, Notifier, get_notifier
from .security import FixedWindowRateLimiter, redact_smtp_config, sanitize_for_logging

__all__ = [
    "GeminiClient",
    "get_ai_client",
    "response_text",
    "strip_markdown_json",
    "SheetAppender",
    "build_submission_row",
    "extract_spreadsheet_id",
    "get_sheet_appender",
    "NotificationStatus",
    "Notifier",
    "get_notifier",
    "FixedWindowRateLimiter",
    "redact_smtp_config",
    "sanitize_for_logging",
]
