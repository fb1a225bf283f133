"""Submission emails: a confirmation to the submitter and a notice to admins.

Both messages are rendered as plain text plus HTML. Every value that came
from the submitter goes through :func:`escape_html` before it is placed in
markup. :meth:`Notifier.dispatch` never raises; it reports what was sent.
"""
import html
import mimetypes
import os
import smtplib
import uuid
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from email.utils import formataddr
from functools import lru_cache, partial
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

import structlog

from catalyst.backend.config import EmailSettings, SMTPSettings, get_settings
from catalyst.backend.schemas import SubmissionRequest
from catalyst.backend.services.security import redact_smtp_config

log = structlog.get_logger()

LIST_ID = "project-catalyst.submissions"

FONT_STACK = "system-ui,-apple-system,'Segoe UI',Roboto,Ubuntu,Cantarell,'Helvetica Neue',Noto Sans,sans-serif"

NEXT_STEPS = [
    "You'll get a scoping reply within <strong>1-2 business days</strong>.",
    "If it's a fit, we'll propose timelines and milestones.",
    "Kickoff call to finalize scope and start.",
]

NEXT_STEPS_TEXT = [
    "1) Scoping reply within 1-2 business days",
    "2) Proposal with timeline if it's a fit",
    "3) Kickoff call",
]


def escape_html(value: Any) -> str:
    """Escape ``& < > " '`` so user text renders as text, never markup."""
    return html.escape("" if value is None else str(value), quote=True)


def escape_attr(value: Any) -> str:
    return escape_html(value).replace("\r\n", " ").replace("\n", " ")


def header_text(value: Any) -> str:
    """Collapse line breaks so user text is safe inside a mail header."""
    return " ".join(str(value).splitlines())


def make_submission_id() -> str:
    return str(uuid.uuid4())


# --- Inline images ---

HEADER_CID = "brandHeader"
LOGO_CID = "brandLogo"


@dataclass(frozen=True)
class InlineImage:
    cid: str
    filename: str
    subtype: str
    data: bytes


def load_inline_images(email: EmailSettings) -> List[InlineImage]:
    """Read the configured header and logo files; unreadable files are skipped."""
    images = []
    for cid, path in ((HEADER_CID, email.header_image_path), (LOGO_CID, email.logo_path)):
        if not path:
            continue
        mime, _ = mimetypes.guess_type(path)
        maintype, _, subtype = (mime or "image/png").partition("/")
        if maintype != "image":
            log.warning("email_inline_image_skipped", cid=cid, path=path, reason="not an image")
            continue
        try:
            with open(path, "rb") as fh:
                data = fh.read()
        except OSError as exc:
            log.warning("email_inline_image_skipped", cid=cid, path=path, reason=str(exc))
            continue
        images.append(InlineImage(cid=cid, filename=os.path.basename(path), subtype=subtype, data=data))
    return images


def _cids(images: Sequence[InlineImage]) -> Set[str]:
    return {image.cid for image in images}


def _header_src(email: EmailSettings, cids: Set[str]) -> Optional[str]:
    if email.header_image_url:
        return email.header_image_url
    if HEADER_CID in cids:
        return f"cid:{HEADER_CID}"
    return None


def format_from_address(email: EmailSettings, smtp: SMTPSettings) -> str:
    configured = email.from_address
    if configured and "<" in configured and ">" in configured:
        return configured
    address = configured or smtp.user or "no-reply@example.com"
    return formataddr((email.from_name, address))


# --- Templates ---


def _analysis_items_html(submission: SubmissionRequest) -> str:
    analysis = submission.ai_analysis
    if not analysis:
        return ""
    items = [
        ("Summary", analysis.summary),
        ("Category", analysis.category),
        ("Complexity", analysis.estimated_complexity),
    ]
    lis = "".join(
        f"<li><strong>{label}:</strong> {escape_html(value)}</li>" for label, value in items if value
    )
    return f'<h3 style="margin:16px 0 8px">AI Analysis</h3><ul style="margin:0 0 12px 18px;padding:0">{lis}</ul>'


def _banner_html(email: EmailSettings, cids: Set[str]) -> str:
    src = _header_src(email, cids)
    if src:
        return (
            '<div style="max-width:640px;margin:0 auto;border-radius:12px;overflow:hidden">'
            f'<img src="{escape_attr(src)}" alt="{escape_attr(email.from_name)}" '
            'style="display:block;width:100%;height:auto;border:0"/></div>'
        )
    return (
        f'<div style="max-width:640px;margin:0 auto;background:{escape_attr(email.brand_color)};'
        f'color:#fff;padding:10px 16px;border-radius:12px"><strong>{escape_html(email.from_name)}</strong></div>'
    )


def render_admin_text(submission: SubmissionRequest, submission_id: Optional[str] = None) -> str:
    lines = [
        f"Project: {submission.project_title}",
        f"From: {submission.name} <{submission.email}>",
        f"Phone: {submission.phone_number}",
        f"College: {submission.college_name}",
        f"Address: {submission.address}",
        f"Type: {submission.project_type}  Budget: {submission.budget}",
    ]
    if submission_id:
        lines.append(f"Submission ID: {submission_id}")
    lines += ["", "Description:", submission.project_description]
    analysis = submission.ai_analysis
    if analysis:
        lines += [
            "",
            "AI Analysis:",
            f"- Summary: {analysis.summary}",
            f"- Category: {analysis.category}",
            f"- Complexity: {analysis.estimated_complexity}",
        ]
    return "\n".join(lines)


def render_admin_html(
    submission: SubmissionRequest,
    email: EmailSettings,
    submission_id: str,
    images: Sequence[InlineImage] = (),
) -> str:
    s = submission
    return f"""
<div style="font-family:{FONT_STACK};line-height:1.5">
  {_banner_html(email, _cids(images))}
  <h2 style="margin:0 0 12px">{escape_html(s.project_title)}</h2>
  <p style="margin:0 0 8px">From: <strong>{escape_html(s.name)}</strong> &lt;{escape_html(s.email)}&gt;</p>
  <p style="margin:0 0 8px">Phone: {escape_html(s.phone_number)}</p>
  <p style="margin:0 0 8px">College: {escape_html(s.college_name)}</p>
  <p style="margin:0 0 8px">Address: {escape_html(s.address)}</p>
  <p style="margin:0 0 8px">Type: {escape_html(s.project_type)} &middot; Budget: {escape_html(s.budget)}</p>
  <p style="margin:0 0 8px;color:#6b7280">Submission ID: {escape_html(submission_id)}</p>
  <h3 style="margin:16px 0 8px">Description</h3>
  <p style="white-space:pre-wrap">{escape_html(s.project_description)}</p>
  {_analysis_items_html(s)}
</div>
"""


def render_client_text(submission: SubmissionRequest, email: EmailSettings, submission_id: str) -> str:
    return "\n".join(
        [
            f'Thanks, {submission.name}! We\'ve received "{submission.project_title}".',
            "",
            f"Submission ID: {submission_id}",
            "",
            "What happens next:",
            *NEXT_STEPS_TEXT,
            "",
            f"Book a quick call: {email.cta_url}",
            "",
            render_admin_text(submission),
        ]
    )


def render_client_html(
    submission: SubmissionRequest,
    email: EmailSettings,
    submission_id: str,
    images: Sequence[InlineImage] = (),
) -> str:
    s = submission
    cids = _cids(images)
    color = escape_attr(email.brand_color)
    brand = escape_html(email.from_name)
    preheader = f"Thanks, {s.name}! We've received “{s.project_title}”."
    steps = "".join(f"<li>{step}</li>" for step in NEXT_STEPS)
    header_src = _header_src(email, cids)
    if header_src:
        header = (
            f'<tr><td style="padding:0;background:#000"><img src="{escape_attr(header_src)}" '
            f'alt="{escape_attr(email.from_name)}" width="640" style="display:block;width:100%;height:auto;border:0"/></td></tr>'
        )
    else:
        if LOGO_CID in cids:
            mark = f'<img src="cid:{LOGO_CID}" alt="{escape_attr(email.from_name)}" height="28" style="display:block;border:0"/>'
        else:
            mark = f'<span style="color:#e0fffb;font-weight:700">{brand}</span>'
        header = (
            f'<tr><td style="padding:20px 24px;background:{color}"><table width="100%"><tr>'
            f"<td>{mark}</td>"
            '<td align="right" style="color:#e0fffb;font-weight:600">Submission received</td>'
            "</tr></table></td></tr>"
        )
    return f"""
<div style="font-family:{FONT_STACK};line-height:1.6;background:#f6f7f9;padding:24px">
  <span style="display:none!important;visibility:hidden;opacity:0;color:transparent;height:0;width:0;overflow:hidden">{escape_html(preheader)}</span>
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="max-width:640px;margin:0 auto;background:#fff;border-radius:12px;overflow:hidden">
    {header}
    <tr>
      <td style="padding:24px">
        <h2 style="margin:0 0 8px;font-size:20px">Thanks, {escape_html(s.name)}!</h2>
        <p style="margin:0 0 16px">We've received your project <strong>{escape_html(s.project_title)}</strong>.</p>
        <table role="presentation" width="100%" style="background:#f3f4f6;border-radius:10px;padding:16px;margin:16px 0">
          <tr><td><strong>Submission ID:</strong> {escape_html(submission_id)}</td></tr>
          <tr><td><strong>Type:</strong> {escape_html(s.project_type)} &nbsp;&middot;&nbsp; <strong>Budget:</strong> {escape_html(s.budget)}</td></tr>
          <tr><td><strong>Email:</strong> {escape_html(s.email)}</td></tr>
        </table>
        <h3 style="margin:16px 0 8px">What happens next?</h3>
        <ol style="margin:0 0 16px 20px;padding:0">{steps}</ol>
        <div style="margin:20px 0">
          <a href="{escape_attr(email.cta_url)}" style="display:inline-block;padding:12px 18px;background:{color};color:#ffffff;text-decoration:none;border-radius:8px;font-weight:600">Book a quick call</a>
        </div>
        <h3 style="margin:16px 0 8px">Your description</h3>
        <p style="white-space:pre-wrap;margin:0 0 12px">{escape_html(s.project_description)}</p>
        {_analysis_items_html(s)}
        <p style="margin-top:24px;color:#6b7280;font-size:12px">If anything looks off, reply to this email with updates. We'll track your update using your Submission ID.</p>
      </td>
    </tr>
    <tr>
      <td style="background:#f9fafb;padding:16px 24px;color:#6b7280;font-size:12px">
        &copy; {datetime.now().year} {brand} &middot; {escape_html(email.company_address)}
      </td>
    </tr>
  </table>
</div>
"""


def build_message(
    *,
    sender: str,
    to: List[str],
    subject: str,
    text: str,
    html_body: str,
    submission_id: str,
    reply_to: Optional[str] = None,
    images: Sequence[InlineImage] = (),
) -> EmailMessage:
    """Plain text plus HTML alternative; images the HTML cites by cid are attached inline."""
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = ", ".join(to)
    msg["Subject"] = header_text(subject)
    if reply_to:
        msg["Reply-To"] = reply_to
    msg["X-Submission-ID"] = submission_id
    msg["List-ID"] = LIST_ID
    msg.set_content(text)
    msg.add_alternative(html_body, subtype="html")
    html_part = msg.get_payload()[1]
    for image in images:
        if f"cid:{image.cid}" not in html_body:
            continue
        html_part.add_related(
            image.data,
            maintype="image",
            subtype=image.subtype,
            cid=f"<{image.cid}>",
            filename=image.filename,
            disposition="inline",
        )
    return msg


# --- Transport ---


class SMTPTransport:
    """Sends one message per connection over SMTP."""

    def __init__(self, settings: SMTPSettings) -> None:
        self.settings = settings

    def send(self, msg: EmailMessage) -> None:
        s = self.settings
        if s.secure:
            smtp = smtplib.SMTP_SSL(s.host, s.port, timeout=s.timeout)
        else:
            smtp = smtplib.SMTP(s.host, s.port, timeout=s.timeout)
        with smtp:
            if s.debug:
                smtp.set_debuglevel(1)
            if not s.secure:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls()
                    smtp.ehlo()
            smtp.login(s.user, s.password)
            smtp.send_message(msg)


# --- Dispatcher ---


@dataclass
class NotificationStatus:
    client_sent: bool = False
    admin_sent: bool = False

    def as_dict(self) -> Dict[str, bool]:
        return {"clientSent": self.client_sent, "adminSent": self.admin_sent}


class Notifier:
    def __init__(self, smtp: SMTPSettings, email: EmailSettings, transport: Any = None) -> None:
        self.smtp = smtp
        self.email = email
        if transport is None and smtp.configured:
            transport = SMTPTransport(smtp)
        self.transport = transport
        self.images = load_inline_images(email)

    def _client_message(self, submission: SubmissionRequest, submission_id: str) -> EmailMessage:
        return build_message(
            sender=format_from_address(self.email, self.smtp),
            to=[submission.email],
            subject=f"Thanks - We received your project ({submission_id[:8]})",
            text=render_client_text(submission, self.email, submission_id),
            html_body=render_client_html(submission, self.email, submission_id, self.images),
            submission_id=submission_id,
            reply_to=self.email.support_address,
            images=self.images,
        )

    def _admin_message(self, submission: SubmissionRequest, submission_id: str) -> EmailMessage:
        return build_message(
            sender=format_from_address(self.email, self.smtp),
            to=self.email.admin_recipients,
            subject=f"New submission - {self.email.from_name}: {submission.project_title} [{submission_id}]",
            text=render_admin_text(submission, submission_id),
            html_body=render_admin_html(submission, self.email, submission_id, self.images),
            submission_id=submission_id,
            reply_to=submission.email,
            images=self.images,
        )

    def _deliver(self, kind: str, build: Callable[[], EmailMessage], submission_id: str) -> bool:
        """Build and send one message; any failure is logged and reported as False."""
        try:
            msg = build()
        except Exception as exc:  # noqa: BLE001
            log.error("email_build_failed", kind=kind, submission_id=submission_id, error=str(exc))
            return False
        try:
            self.transport.send(msg)
        except Exception as exc:  # noqa: BLE001
            log.warning(
                "email_send_failed",
                kind=kind,
                submission_id=submission_id,
                error=str(exc),
                smtp=redact_smtp_config(self.smtp),
            )
            return False
        log.info("email_sent", kind=kind, submission_id=submission_id, to=msg["To"])
        return True

    def dispatch(self, submission: SubmissionRequest) -> NotificationStatus:
        """Send the client confirmation and the admin notice independently."""
        status = NotificationStatus()
        if self.transport is None:
            log.warning("email_skipped_unconfigured", smtp=redact_smtp_config(self.smtp))
            return status

        submission_id = make_submission_id()
        status.client_sent = self._deliver(
            "client", partial(self._client_message, submission, submission_id), submission_id
        )
        if self.email.admin_recipients:
            status.admin_sent = self._deliver(
                "admin", partial(self._admin_message, submission, submission_id), submission_id
            )
        else:
            log.info("email_admin_skipped_no_recipients", submission_id=submission_id)

        log.info("email_dispatch_complete", submission_id=submission_id, **status.as_dict())
        return status


@lru_cache(maxsize=1)
def get_notifier() -> Notifier:
    settings = get_settings()
    return Notifier(settings.smtp, settings.email)
