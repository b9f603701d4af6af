import logging

from sqlalchemy.exc import IntegrityError

from marketplace.extensions import db
from marketplace.models.invitation import Invitation, PENDING, ACCEPTED, DECLINED
from marketplace.models.user import User
from marketplace.services import email_service
from marketplace.services.policy import authorize
from marketplace.services.rfq_service import get_rfq_or_404, open_request_from_invitation
from marketplace.services.rfq_states import is_accepting_requests
from marketplace.utils.dates import utcnow
from marketplace.utils.exceptions import NotFound, ValidationError

logger = logging.getLogger(__name__)


def get_invitation_or_404(invitation_id) -> Invitation:
    invitation = db.session.get(Invitation, invitation_id)
    if not invitation:
        raise NotFound("Invitation not found")
    return invitation


def send_invitation(buyer, data) -> Invitation:
    rfq = get_rfq_or_404(data["rfq_id"])
    authorize(buyer, "invite", rfq, "Not authorized to send invitations for this RFQ")

    if not is_accepting_requests(rfq.status):
        raise ValidationError("RFQ is not accepting requests", {"status": rfq.status})

    manufacturer = db.session.get(User, data["manufacturer_id"])
    if not manufacturer or not manufacturer.is_manufacturer:
        raise NotFound("Manufacturer not found")
    if manufacturer.id == buyer.id:
        raise ValidationError("You cannot invite yourself")

    if Invitation.query.filter_by(rfq_id=rfq.id, manufacturer_id=manufacturer.id).first():
        raise ValidationError(
            "Invitation already sent to this manufacturer",
            code="DUPLICATE_INVITATION",
        )

    invitation = Invitation(
        rfq_id=rfq.id,
        buyer_id=buyer.id,
        manufacturer_id=manufacturer.id,
        message=data.get("message"),
        status=PENDING,
    )
    db.session.add(invitation)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError(
            "Invitation already sent to this manufacturer",
            code="DUPLICATE_INVITATION",
        )

    logger.info("Invitation %s sent for %s to %s", invitation.id, rfq.id, manufacturer.id)
    email_service.send_invitation_email(manufacturer, rfq, buyer, invitation.message)
    return invitation


def _pending_invitation_for(manufacturer, invitation_id) -> Invitation:
    invitation = get_invitation_or_404(invitation_id)
    authorize(manufacturer, "respond", invitation, "Not authorized to respond to this invitation")
    if invitation.status != PENDING:
        raise ValidationError(
            "Invitation has already been responded to",
            {"status": invitation.status},
        )
    return invitation


def accept_invitation(manufacturer, invitation_id):
    """Accept an invitation and open a manufacturer request for its RFQ."""
    invitation = _pending_invitation_for(manufacturer, invitation_id)
    rfq = invitation.rfq

    try:
        req = open_request_from_invitation(manufacturer, rfq)
        invitation.status = ACCEPTED
        invitation.responded_at = utcnow()
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError(
            "You have already requested this RFQ",
            code="DUPLICATE_REQUEST",
        )

    logger.info("Invitation %s accepted, request %s opened", invitation.id, req.id)
    email_service.send_request_received_email(rfq.buyer, rfq, manufacturer)
    return invitation, req


def decline_invitation(manufacturer, invitation_id, reason=None) -> Invitation:
    invitation = _pending_invitation_for(manufacturer, invitation_id)
    invitation.status = DECLINED
    invitation.responded_at = utcnow()
    invitation.decline_reason = reason
    db.session.commit()
    return invitation


def received_invitations_query(manufacturer, status=None):
    authorize(manufacturer, "list_invitations")
    query = Invitation.query.filter_by(manufacturer_id=manufacturer.id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Invitation.invited_at.desc())


def sent_invitations_query(buyer, rfq_id=None):
    query = Invitation.query.filter_by(buyer_id=buyer.id)
    if rfq_id:
        rfq = get_rfq_or_404(rfq_id)
        authorize(buyer, "invite", rfq, "Not authorized to view invitations for this RFQ")
        query = query.filter_by(rfq_id=rfq.id)
    return query.order_by(Invitation.invited_at.desc())


def invitation_detail(actor, invitation_id) -> Invitation:
    invitation = get_invitation_or_404(invitation_id)
    authorize(actor, "view", invitation, "Not authorized to view this invitation")
    return invitation
