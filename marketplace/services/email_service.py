import logging
from datetime import datetime

from flask import current_app, render_template

from marketplace.utils.mailer import send_email

logger = logging.getLogger(__name__)

COMPANY_NAME = "RFQ Marketplace"


def _deliver(to, subject, template, **context):
    """Render and send; delivery problems are logged and never raised."""
    if not to:
        return
    try:
        html = render_template(
            template,
            company_name=COMPANY_NAME,
            year=datetime.now().year,
            frontend_url=current_app.config["FRONTEND_URL"],
            **context,
        )
        send_email(to=to, subject=subject, html=html)
    except Exception as e:
        logger.error("Failed to send %r to %s: %s", subject, to, e)


def send_verification_email(user, token):
    verify_url = f"{current_app.config['FRONTEND_URL']}/verify-email?token={token}"
    _deliver(
        user.email,
        f"Verify your {COMPANY_NAME} account",
        "emails/verify_email.html",
        title="Verify your email",
        full_name=user.full_name,
        verify_url=verify_url,
    )


def send_request_received_email(buyer, rfq, manufacturer):
    _deliver(
        buyer.email,
        f"New manufacturer request for {rfq.title}",
        "emails/request_received.html",
        title="New manufacturer request",
        full_name=buyer.full_name,
        rfq=rfq,
        manufacturer_name=manufacturer.company_name or manufacturer.full_name,
    )


def send_request_accepted_email(manufacturer, rfq):
    _deliver(
        manufacturer.email,
        f"You have been selected for {rfq.title}",
        "emails/request_accepted.html",
        title="Request accepted",
        full_name=manufacturer.full_name,
        rfq=rfq,
    )


def send_request_rejected_email(manufacturer, rfq, reason=None):
    _deliver(
        manufacturer.email,
        f"Update on your request for {rfq.title}",
        "emails/request_rejected.html",
        title="Request update",
        full_name=manufacturer.full_name,
        rfq=rfq,
        reason=reason,
    )


def send_invitation_email(manufacturer, rfq, buyer, message=None):
    _deliver(
        manufacturer.email,
        f"You are invited to quote on {rfq.title}",
        "emails/invitation_received.html",
        title="New RFQ invitation",
        full_name=manufacturer.full_name,
        rfq=rfq,
        buyer_name=buyer.company_name or buyer.full_name,
        message=message,
    )


def send_rfq_shipped_email(buyer, rfq):
    tracking = rfq.tracking_info or {}
    _deliver(
        buyer.email,
        f"{rfq.title} has shipped",
        "emails/rfq_shipped.html",
        title="Order shipped",
        full_name=buyer.full_name,
        rfq=rfq,
        carrier=tracking.get("carrier"),
        tracking_id=tracking.get("trackingId"),
    )
