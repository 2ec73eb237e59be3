"""
Best-effort email notifications for approval-gate transitions.

Every public function here returns a bool and never raises: a failed send is
logged as `notification_failed` and the caller's write stands.
"""

from __future__ import annotations

from typing import Any

from ...infrastructure.email_ses import send_text_email
from ...observability.logging import get_logger
from ...settings import settings

log = get_logger("notifier")


def _dispatch(*, kind: str, to_email: str | None, subject: str, text: str) -> bool:
    to_ = str(to_email or "").strip()
    frm = str(settings.ses_from_email or "").strip()
    if not to_ or not frm:
        log.info("notification_skipped", kind=kind, reason="missing_to_or_from")
        return False
    try:
        res = send_text_email(to_email=to_, from_email=frm, subject=subject, text=text)
    except Exception as e:  # noqa: BLE001
        log.warning("notification_failed", kind=kind, error=str(e) or e.__class__.__name__)
        return False
    if not res.get("ok"):
        log.warning("notification_failed", kind=kind, error=str(res.get("error") or "send_failed"))
        return False
    log.info("notification_sent", kind=kind, message_id=res.get("messageId"))
    return True


def _login_url() -> str:
    return f"{str(settings.frontend_base_url or '').rstrip('/')}/business/login"


def notify_business_approved(business: dict[str, Any]) -> bool:
    company = str(business.get("companyName") or "your business")
    contact = str(business.get("contactPersonName") or "there")
    text = (
        f"Dear {contact},\n\n"
        f"Great news! Your business account for {company} has been approved.\n\n"
        "You now have full access to:\n"
        "- View student profiles and applications\n"
        "- Post project opportunities\n"
        "- Connect with talented students\n\n"
        f"Login to your dashboard to get started:\n{_login_url()}\n\n"
        "Welcome to NextStep!\n\nThe NextStep Team"
    )
    return _dispatch(
        kind="business_approved",
        to_email=business.get("email"),
        subject="Your NextStep Business Account Has Been Approved!",
        text=text,
    )


def notify_business_rejected(business: dict[str, Any]) -> bool:
    company = str(business.get("companyName") or "your business")
    contact = str(business.get("contactPersonName") or "there")
    text = (
        f"Dear {contact},\n\n"
        "Thank you for your interest in NextStep.\n\n"
        f"After reviewing your application for {company}, we're unable to approve "
        "your business account at this time.\n\n"
        "If you believe this is an error, please reply to this email.\n\n"
        "The NextStep Team"
    )
    return _dispatch(
        kind="business_rejected",
        to_email=business.get("email"),
        subject="Update on Your NextStep Business Account Application",
        text=text,
    )


def notify_admin_business_registered(business: dict[str, Any]) -> bool:
    text = (
        "A new business has registered and is pending approval:\n\n"
        f"Business Name: {business.get('companyName') or ''}\n"
        f"Contact Person: {business.get('contactPersonName') or ''}\n"
        f"Contact Email: {business.get('email') or ''}\n\n"
        f"Review at: {str(settings.frontend_base_url or '').rstrip('/')}/admin/dashboard\n"
    )
    return _dispatch(
        kind="admin_business_registered",
        to_email=settings.admin_notification_email,
        subject="New Business Registration Pending Approval",
        text=text,
    )
