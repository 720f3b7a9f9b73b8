"""Applicant e-mails for submission status changes.

Messages are rendered here and handed to a delivery webhook; this service does
not speak SMTP itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx
from jinja2 import DictLoader, Environment, StrictUndefined

from acrecap.core.settings import Settings
from acrecap.schemas.submissions import SubmissionRead, SubmissionStatus
from acrecap.services import webhooks

logger = logging.getLogger(__name__)

SUBJECTS = {
    SubmissionStatus.APPROVED: "Good news! Your loan application has been approved",
    SubmissionStatus.REJECTED: "Update on your loan application",
    SubmissionStatus.PENDING: "We received your loan application",
}

CHAT_MESSAGES = {
    SubmissionStatus.APPROVED: (
        "Hello I have received my loan approval email and would like to know the next steps"
    ),
    SubmissionStatus.REJECTED: (
        "Hello I received an update on my loan application and would like to discuss alternative options"
    ),
    SubmissionStatus.PENDING: "Hello I have applied for a loan and would like to check on my application",
}

HTML_TEMPLATE = """<!doctype html>
<html>
<head>
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <meta http-equiv="Content-Type" content="text/html; charset=UTF-8" />
  <title>{{ subject }}</title>
  <style>
    @media only screen and (max-width: 600px) {
      .container { padding: 16px !important; }
      .card { padding: 16px !important; }
      h1 { font-size: 20px !important; }
      p { font-size: 15px !important; }
    }
    .btn { display:inline-block; padding:12px 16px; border-radius:8px; text-decoration:none; }
    .btn-primary { background:#10b981; color:#ffffff; }
    .btn-outline { border:1px solid #10b981; color:#10b981; }
  </style>
</head>
<body style="margin:0; background:#f3f4f6; font-family:-apple-system, 'Segoe UI', Roboto, Arial, sans-serif; color:#111827;">
  <div style="max-width:640px; margin:0 auto; padding:24px" class="container">
    <div style="background:#ffffff; border-radius:12px; padding:24px" class="card">
      <h1 style="margin:0 0 8px">{{ subject }}</h1>
      {% if status == "approved" %}
      <p style="margin:0">Congratulations {{ greeting_name }}! We're excited to share that your loan application has been <strong>approved</strong>.</p>
      {% elif status == "rejected" %}
      <p style="margin:0">Hello {{ greeting_name }}, thank you for applying with {{ company }}. After careful review, we're unable to approve your application at this time.</p>
      {% else %}
      <p style="margin:0">Hello {{ greeting_name }}, thank you for applying with {{ company }}. Your application is currently under review. We'll reach out shortly.</p>
      {% endif %}
      <table role="presentation" width="100%" style="border-collapse:collapse; margin-top:16px">
        {% for label, value in details %}
        <tr>
          <td style="padding:8px 12px; background:#f9fafb; border:1px solid #e5e7eb">{{ label }}</td>
          <td style="padding:8px 12px; border:1px solid #e5e7eb">{{ value }}</td>
        </tr>
        {% endfor %}
      </table>
      <div style="height:16px"></div>
      {% if status == "approved" %}
      <ul style="margin:0; padding-left:18px">
        <li>Our team will contact you within 24 hours to verify details</li>
        <li>Prepare KYC documents (PAN, Aadhaar), business proof, and bank statements</li>
        <li>We'll share the sanction letter and finalize disbursement timeline</li>
      </ul>
      {% elif status == "rejected" %}
      <p style="margin:0">While we're unable to proceed right now, here are some options you can consider:</p>
      <ul style="margin:0; padding-left:18px">
        <li>Apply for a lower loan amount</li>
        <li>Share additional business documents to strengthen your profile</li>
        <li>Explore secured loan options with collateral</li>
      </ul>
      <p style="margin:0">Reply to this email and our team will help you with the best available alternatives.</p>
      {% else %}
      <ul style="margin:0; padding-left:18px">
        <li>A loan specialist will review your details</li>
        <li>Keep your PAN, GST and recent bank statements handy</li>
      </ul>
      {% endif %}
      <div style="height:16px"></div>
      <p style="margin:0">If you have any questions, simply reply to this email. We're here to help.</p>
      <div style="height:16px"></div>
      <a class="btn {{ 'btn-primary' if status == 'approved' else 'btn-outline' }}" href="{{ chat_url }}" target="_blank" rel="noopener">{{ chat_label }}</a>
      <div style="height:24px"></div>
      <p style="margin:0; color:#6b7280">Regards,<br/>{{ company }} Team</p>
    </div>
    <p style="margin:16px 0 0; text-align:center; color:#6b7280; font-size:12px">This is an automated notification for your application {{ submission_id }}. If you didn't initiate this request, please ignore.</p>
  </div>
</body>
</html>
"""

TEXT_TEMPLATE = """{{ subject }}

{% if status == "approved" -%}
Congratulations {{ greeting_name }}! Your application has been approved. Next steps: verification call, prepare documents, and we'll share the sanction letter.
{%- elif status == "rejected" -%}
Hello {{ greeting_name }}, we're unable to approve your application at this time. Consider a lower amount, add documents, or explore secured options. Reply and we'll assist.
{%- else -%}
Hello {{ greeting_name }}, your application is under review. We'll contact you shortly.
{%- endif %}

Application ID: {{ submission_id }}
Loan Amount: {{ loan_amount }}
Purpose: {{ loan_purpose }}
Tenure: {{ tenure }}

Regards, {{ company }} Team
"""

_html_env = Environment(
    loader=DictLoader({"status_email.html": HTML_TEMPLATE}),
    autoescape=True,
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
)
_text_env = Environment(
    loader=DictLoader({"status_email.txt": TEXT_TEMPLATE}),
    autoescape=False,
    undefined=StrictUndefined,
)


@dataclass(frozen=True)
class StatusEmail:
    subject: str
    html: str
    text: str


def chat_link(base_url: str, status: SubmissionStatus) -> str:
    return f"{base_url}?text={quote(CHAT_MESSAGES[status])}"


def build_status_email(
    submission: SubmissionRead,
    status: SubmissionStatus,
    *,
    company_name: str = "AcreCap",
    support_chat_url: str = "https://wa.me/919696255795",
) -> StatusEmail:
    subject = SUBJECTS[status]
    context: dict[str, Any] = {
        "subject": subject,
        "status": status.value,
        "company": company_name,
        "greeting_name": (submission.name or "").strip() or "Valued Customer",
        "submission_id": str(submission.id),
        "loan_amount": submission.loan_amount,
        "loan_purpose": submission.loan_purpose,
        "tenure": submission.tenure,
        "details": [
            ("Application ID", str(submission.id)),
            ("Name", submission.name),
            ("Loan Amount", submission.loan_amount),
            ("Purpose", submission.loan_purpose),
            ("Tenure", submission.tenure),
        ],
        "chat_url": chat_link(support_chat_url, status),
        "chat_label": "Chat with us" if status is SubmissionStatus.APPROVED else "Discuss options",
    }
    html = _html_env.get_template("status_email.html").render(context)
    text = _text_env.get_template("status_email.txt").render(context)
    return StatusEmail(subject=subject, html=html, text=text)


async def send_status_email(
    submission: SubmissionRead,
    status: SubmissionStatus,
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    if not settings.status_email_webhook_url:
        logger.debug("Status e-mail webhook not configured; skipping %s", submission.id)
        return {"skipped": True}
    email = build_status_email(
        submission,
        status,
        company_name=settings.company_name,
        support_chat_url=settings.support_chat_url,
    )
    body = {
        "type": "status_email",
        "to": submission.email,
        "subject": email.subject,
        "html": email.html,
        "text": email.text,
        "meta": {"submissionId": str(submission.id), "status": status.value},
    }
    return await webhooks.post_json(
        settings.status_email_webhook_url,
        body,
        purpose="status_email",
        timeout=settings.webhook_timeout_seconds,
        transport=transport,
    )
