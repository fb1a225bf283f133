import re
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, List, Optional, Sequence, Union

import structlog
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from catalyst.backend.config import SheetsSettings, get_settings
from catalyst.backend.errors import ConfigurationError, UpstreamError
from catalyst.backend.schemas import SubmissionRequest

log = structlog.get_logger()

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

_SPREADSHEET_URL_RE = re.compile(r"spreadsheets/(?:d|u/\d+/d)/([^/?#]+)")

Cell = Union[str, int, float, None]


def extract_spreadsheet_id(url: Optional[str]) -> Optional[str]:
    """Pull the spreadsheet id out of a Google Sheets URL."""
    if not url:
        return None
    match = _SPREADSHEET_URL_RE.search(url)
    return match.group(1) if match else None


def build_submission_row(submission: SubmissionRequest, timestamp: Optional[datetime] = None) -> List[Cell]:
    """Flatten a submission into the fixed 13-column sheet layout."""
    ts = (timestamp or datetime.now(timezone.utc)).isoformat()
    analysis = submission.ai_analysis
    return [
        ts,
        submission.name,
        submission.email,
        submission.phone_number,
        submission.college_name,
        submission.address,
        submission.project_title,
        submission.project_description,
        submission.project_type,
        submission.budget,
        analysis.summary if analysis else "",
        analysis.category if analysis else "",
        analysis.estimated_complexity if analysis else "",
    ]


class SheetAppender:
    """Appends rows to a worksheet with a service-account credential.

    Each call issues one independent ``values.append``; the Sheets API
    serializes concurrent appends so rows never overwrite each other.
    """

    def __init__(self, settings: SheetsSettings, service: Any = None) -> None:
        self.settings = settings
        self._service = service

    @property
    def spreadsheet_id(self) -> Optional[str]:
        return self.settings.spreadsheet_id or extract_spreadsheet_id(self.settings.spreadsheet_url)

    @property
    def range(self) -> str:
        return f"{self.settings.worksheet_title}!A:Z"

    def _credentials(self) -> service_account.Credentials:
        email = self.settings.service_account_email
        key = self.settings.private_key
        if not email or not key:
            raise ConfigurationError(
                "Missing Google service account credentials. Set GOOGLE_SERVICE_ACCOUNT_EMAIL "
                "and GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY."
            )
        info = {
            "type": "service_account",
            "client_email": email,
            "private_key": key.replace("\\n", "\n"),
            "token_uri": TOKEN_URI,
        }
        try:
            return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid service account key: {exc}") from exc

    def _get_service(self) -> Any:
        if self._service is None:
            self._service = build("sheets", "v4", credentials=self._credentials(), cache_discovery=False)
        return self._service

    def append(self, row: Sequence[Cell]) -> None:
        spreadsheet_id = self.spreadsheet_id
        if not spreadsheet_id:
            raise ConfigurationError("GOOGLE_SHEETS_SPREADSHEET_ID is not set.")

        service = self._get_service()
        try:
            result = (
                service.spreadsheets()
                .values()
                .append(
                    spreadsheetId=spreadsheet_id,
                    range=self.range,
                    valueInputOption="USER_ENTERED",
                    insertDataOption="INSERT_ROWS",
                    body={"values": [list(row)]},
                )
                .execute()
            )
        except HttpError as exc:
            log.error("sheet_append_failed", status=exc.resp.status, error=str(exc))
            raise UpstreamError(f"Spreadsheet append failed ({exc.resp.status})") from exc
        except GoogleAuthError as exc:
            log.error("sheet_auth_failed", error=str(exc))
            raise UpstreamError("Spreadsheet authentication failed") from exc
        except OSError as exc:
            log.error("sheet_append_unreachable", error=str(exc))
            raise UpstreamError("Spreadsheet service unreachable") from exc

        updates = (result or {}).get("updates", {})
        log.info("sheet_row_appended", range=updates.get("updatedRange"), cells=updates.get("updatedCells"))


@lru_cache(maxsize=1)
def get_sheet_appender() -> SheetAppender:
    return SheetAppender(get_settings().sheets)
