"""
Markdown bodies for the chat webhook.

All formatters are pure: the same input always yields the same text.
Timestamps are passed in by the caller.
"""
from datetime import datetime
from enum import IntEnum
from typing import Dict, Optional

from .record import PaymentRecord

EMAIL_NOT_PROVIDED = "not provided"


def payment_message(record: PaymentRecord, dashboard_url: Optional[str] = None) -> str:
    """Summary of a payment status update."""
    currency = record.get("pay_currency")
    lines = [
        "💰 Payment notification",
        "",
        "📊 **Payment status update**",
        f"- Payment ID: {record.payment_id}",
        f"- Invoice ID: {record.get('invoice_id')}",
        f"- Status: {record.status}",
        f"- Amount: {record.get('pay_amount')} {currency}",
        f"- Actually paid: {record.amount_paid} {currency}",
        f"- Pay address: {record.get('pay_address')}",
        "",
        "📝 **Order**",
        f"- Order: {record.order_reference}",
        f"- Customer e-mail: {record.contact_email or EMAIL_NOT_PROVIDED}",
        "",
        "⏰ **Timestamps**",
        f"- Created: {record.get('created_at')}",
        f"- Updated: {record.get('updated_at')}",
    ]
    if dashboard_url:
        lines.extend(["", f"🔗 [Provider dashboard]({dashboard_url})"])
    return "\n".join(lines)


class RequestType(IntEnum):
    """Kinds of form request a visitor can submit."""

    NEWSLETTER = 1
    MONTHLY_MEMBERSHIP = 2
    ANNUAL_MEMBERSHIP = 3
    PAID_DOWNLOAD = 4

    @classmethod
    def resolve(cls, value: int) -> Optional["RequestType"]:
        try:
            return cls(value)
        except ValueError:
            return None


ACKNOWLEDGEMENTS: Dict[Optional[RequestType], str] = {
    RequestType.NEWSLETTER: "Subscription request received. Thank you for subscribing!",
    RequestType.MONTHLY_MEMBERSHIP: (
        "Monthly membership request received. Confirmation email will be sent shortly."
    ),
    RequestType.ANNUAL_MEMBERSHIP: (
        "Annual membership request received. Confirmation email will be sent shortly."
    ),
    RequestType.PAID_DOWNLOAD: (
        "Payment and download request received. "
        "Payment instructions will be sent to your email."
    ),
    None: "Request received. We'll process your request shortly.",
}


def form_request_message(
    request_type: int, email: str, url: str, submitted_at: datetime
) -> str:
    """Markdown for a subscription, membership or download request."""
    kind = RequestType.resolve(request_type)
    when = submitted_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip()

    if kind is RequestType.NEWSLETTER:
        rows = [
            "📧 **Newsletter subscription request**",
            f"**E-mail:** {email}",
            f"**Submitted:** {when}",
            "**Request:** subscribe to the newsletter",
        ]
    elif kind in (RequestType.MONTHLY_MEMBERSHIP, RequestType.ANNUAL_MEMBERSHIP):
        label = "Monthly" if kind is RequestType.MONTHLY_MEMBERSHIP else "Annual"
        icon = "💰" if kind is RequestType.MONTHLY_MEMBERSHIP else "💎"
        rows = [
            f"{icon} **{label} membership request**",
            f"**E-mail:** {email}",
            f"**Submitted:** {when}",
            f"**Membership:** {label.lower()}",
            f"**Source page:** {url}",
            "**Request:** membership sign-up, send a confirmation e-mail",
        ]
    elif kind is RequestType.PAID_DOWNLOAD:
        rows = [
            "🛒 **Paid download request**",
            f"**E-mail:** {email}",
            f"**Submitted:** {when}",
            f"**Download page:** {url}",
            "**Request:** pay for and download this page",
            "**Action:** send the payment link and download address",
        ]
    else:
        rows = [
            "❓ **Unrecognized request**",
            f"**E-mail:** {email}",
            f"**Request type:** {request_type} (unrecognized)",
            f"**Source page:** {url}",
            f"**Submitted:** {when}",
        ]
    return "\n\n".join(rows)


def acknowledgement(request_type: int) -> str:
    return ACKNOWLEDGEMENTS[RequestType.resolve(request_type)]


def unsubscribe_message(email: str) -> str:
    return f"{email} unsubscribed from the newsletter"
