from datetime import datetime, timezone

import httplib2
import pytest
from googleapiclient.errors import HttpError

from catalyst.backend.config import SheetsSettings
from catalyst.backend.errors import ConfigurationError, UpstreamError
from catalyst.backend.schemas import SubmissionRequest
from catalyst.backend.services.sheets import SheetAppender, build_submission_row, extract_spreadsheet_id
from fakes import SAMPLE_ANALYSIS


class FakeRequest:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def execute(self):
        if self.error:
            raise self.error
        return self.result


class FakeSheetsService:
    """Mimics service.spreadsheets().values().append(...).execute()."""

    def __init__(self, error=None):
        self.error = error
        self.appends = []

    def spreadsheets(self):
        return self

    def values(self):
        return self

    def append(self, **kwargs):
        self.appends.append(kwargs)
        return FakeRequest({"updates": {"updatedRange": "Sheet1!A2:M2", "updatedCells": 13}}, self.error)


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://docs.google.com/spreadsheets/d/1AbC-xyz_09/edit#gid=0", "1AbC-xyz_09"),
        ("https://docs.google.com/spreadsheets/u/0/d/1AbC-xyz_09/edit", "1AbC-xyz_09"),
        ("https://docs.google.com/spreadsheets/d/1AbC?usp=sharing", "1AbC"),
        ("https://example.com/not-a-sheet", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_spreadsheet_id(url, expected):
    assert extract_spreadsheet_id(url) == expected


def test_row_has_thirteen_columns_in_fixed_order(submission_payload):
    ts = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    row = build_submission_row(SubmissionRequest(**submission_payload), ts)

    assert row == [
        "2026-01-02T03:04:05+00:00",
        "Ann",
        "ann@x.com",
        "+1",
        "X",
        "Y",
        "Shop App",
        "Build an e-commerce app with cart and payments",
        "mobile",
        "7000",
        "",
        "",
        "",
    ]


def test_row_includes_analysis(submission_payload):
    sub = SubmissionRequest(**{**submission_payload, "aiAnalysis": SAMPLE_ANALYSIS})
    row = build_submission_row(sub)
    assert len(row) == 13
    assert row[-3:] == [SAMPLE_ANALYSIS["summary"], "Mobile App Development", "Medium"]


def test_append_issues_one_call_per_row():
    service = FakeSheetsService()
    appender = SheetAppender(SheetsSettings(spreadsheet_id="sheet-123", worksheet_title="Leads"), service=service)

    appender.append(["a", 1, None])
    appender.append(["b", 2, None])

    assert len(service.appends) == 2
    first = service.appends[0]
    assert first["spreadsheetId"] == "sheet-123"
    assert first["range"] == "Leads!A:Z"
    assert first["valueInputOption"] == "USER_ENTERED"
    assert first["insertDataOption"] == "INSERT_ROWS"
    assert first["body"] == {"values": [["a", 1, None]]}


def test_append_resolves_id_from_url():
    service = FakeSheetsService()
    settings = SheetsSettings(spreadsheet_url="https://docs.google.com/spreadsheets/d/from-url/edit")
    SheetAppender(settings, service=service).append(["x"])
    assert service.appends[0]["spreadsheetId"] == "from-url"


def test_append_without_sheet_id_fails():
    with pytest.raises(ConfigurationError):
        SheetAppender(SheetsSettings(), service=FakeSheetsService()).append(["x"])


def test_append_without_credentials_fails():
    appender = SheetAppender(SheetsSettings(spreadsheet_id="sheet-123"))
    with pytest.raises(ConfigurationError, match="service account"):
        appender.append(["x"])


def test_append_http_error_becomes_upstream_error():
    error = HttpError(httplib2.Response({"status": "503"}), b"backend unavailable")
    appender = SheetAppender(SheetsSettings(spreadsheet_id="sheet-123"), service=FakeSheetsService(error=error))
    with pytest.raises(UpstreamError):
        appender.append(["x"])


def test_append_network_error_becomes_upstream_error():
    appender = SheetAppender(
        SheetsSettings(spreadsheet_id="sheet-123"),
        service=FakeSheetsService(error=ConnectionResetError("reset")),
    )
    with pytest.raises(UpstreamError):
        appender.append(["x"])
