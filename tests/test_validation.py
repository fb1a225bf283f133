import pytest
from pydantic import ValidationError

from catalyst.backend.schemas import AIAnalysis, AnalyzeRequest, ChatRequest, SubmissionRequest


def test_analyze_request_requires_ten_characters():
    with pytest.raises(ValidationError) as exc:
        AnalyzeRequest(description="short")
    assert exc.value.errors()[0]["loc"] == ("description",)

    assert AnalyzeRequest(description="A ten char").description == "A ten char"


def test_chat_request_rejects_empty_history():
    with pytest.raises(ValidationError):
        ChatRequest(messages=[])


@pytest.mark.parametrize(
    "message",
    [
        {"role": "assistant", "content": "hi"},
        {"role": "user", "content": ""},
    ],
)
def test_chat_message_rules(message):
    with pytest.raises(ValidationError):
        ChatRequest(messages=[message])


def test_submission_parses_camel_case(submission_payload):
    sub = SubmissionRequest(**submission_payload)
    assert sub.phone_number == "+1"
    assert sub.project_type == "mobile"
    assert sub.ai_analysis is None


def test_submission_accepts_null_analysis(submission_payload):
    sub = SubmissionRequest(**{**submission_payload, "aiAnalysis": None})
    assert sub.ai_analysis is None


@pytest.mark.parametrize(
    "field,value",
    [
        ("email", "not-an-email"),
        ("projectType", "blockchain"),
        ("budget", ""),
        ("name", ""),
        ("collegeName", ""),
    ],
)
def test_submission_rejects_bad_fields(submission_payload, field, value):
    with pytest.raises(ValidationError) as exc:
        SubmissionRequest(**{**submission_payload, field: value})
    assert exc.value.errors()[0]["loc"][0] == field


def test_submission_requires_every_field(submission_payload):
    payload = dict(submission_payload)
    payload.pop("address")
    with pytest.raises(ValidationError):
        SubmissionRequest(**payload)


def test_analysis_enumerations():
    with pytest.raises(ValidationError):
        AIAnalysis(summary="s", category="Blockchain", estimatedComplexity="Low")
    with pytest.raises(ValidationError):
        AIAnalysis(summary="s", category="Other", estimatedComplexity="Extreme")
    analysis = AIAnalysis(summary="s", category="Hardware", estimatedComplexity="High")
    assert analysis.model_dump(by_alias=True) == {
        "summary": "s",
        "category": "Hardware",
        "estimatedComplexity": "High",
    }
