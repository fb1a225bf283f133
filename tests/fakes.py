from typing import Any, List, Optional

from catalyst.backend.config import EmailSettings, SMTPSettings
from catalyst.backend.schemas import AIAnalysis
from catalyst.backend.services.notifications import Notifier

SAMPLE_ANALYSIS = {
    "summary": "An e-commerce mobile app with cart and payments.",
    "category": "Mobile App Development",
    "estimatedComplexity": "Medium",
}

SMTP = SMTPSettings(host="smtp.test", port=587, user="mailer@studio.dev", password="s3cr3t-pass")


class FakeAIClient:
    def __init__(self, reply: str = "Most projects ship in 2-4 weeks.", error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: List[Any] = []

    async def analyze(self, description: str) -> AIAnalysis:
        self.calls.append(("analyze", description))
        if self.error:
            raise self.error
        return AIAnalysis(**SAMPLE_ANALYSIS)

    async def chat(self, messages) -> str:
        self.calls.append(("chat", list(messages)))
        if self.error:
            raise self.error
        return self.reply


class FakeSheet:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.rows: List[List[Any]] = []

    def append(self, row) -> None:
        if self.error:
            raise self.error
        self.rows.append(list(row))


class FakeTransport:
    """Records messages; raises for recipients listed in ``fail_for`` ("*" fails all)."""

    def __init__(self, fail_for: tuple = ()) -> None:
        self.fail_for = fail_for
        self.sent = []

    def send(self, msg) -> None:
        if "*" in self.fail_for or any(addr in msg["To"] for addr in self.fail_for):
            raise ConnectionRefusedError("SMTP unreachable")
        self.sent.append(msg)


def make_notifier(transport=None, admins=("ops@studio.dev",)) -> Notifier:
    return Notifier(
        SMTP,
        EmailSettings(admin_recipients=list(admins), from_address="hello@studio.dev"),
        transport=transport if transport is not None else FakeTransport(),
    )
