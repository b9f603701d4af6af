import logging

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from marketplace.extensions import db
from marketplace.models.invitation import Invitation
from marketplace.models.manufacturer_request import (
    ManufacturerRequest,
    PENDING,
    ACCEPTED,
    REJECTED,
    WITHDRAWN,
)
from marketplace.models.rfq import (
    RFQ,
    DRAFT,
    OPEN_FOR_REQUESTS,
    REQUESTS_PENDING,
    SUPPLIER_SELECTED,
    SHIPPED,
)
from marketplace.models.workpiece import Workpiece
from marketplace.services import email_service
from marketplace.services.matching import compute_match_score, self_declared_matches
from marketplace.services.policy import authorize, rfq_party
from marketplace.services.rfq_states import (
    ACTIVE_ORDER_STATUSES,
    BUYER,
    INITIAL_STATUSES,
    SYSTEM,
    check_transition,
    is_accepting_requests,
    is_editable,
)
from marketplace.utils.dates import iso, parse_datetime, utcnow
from marketplace.utils.exceptions import InvalidTransition, NotFound, ValidationError

logger = logging.getLogger(__name__)

REQUIREMENT_FIELDS = (
    "preferred_currency",
    "part_tracking_id",
    "request_justification",
    "shipping_terms",
    "country",
    "region",
    "communication_language",
    "required_certificates",
    "notes",
    "nda_file",
)
DATE_FIELDS = ("rfq_deadline", "acceptance_deadline", "target_delivery_date")


def get_rfq_or_404(rfq_id) -> RFQ:
    rfq = db.session.get(RFQ, rfq_id)
    if not rfq:
        raise NotFound("RFQ not found")
    return rfq


def _build_workpieces(items):
    workpieces = []
    for position, item in enumerate(items):
        dims = item.get("dimensions") or {}
        workpieces.append(Workpiece(
            position=position,
            main_file=item["main_file"],
            extra_files=item.get("extra_files") or [],
            part_type=item.get("part_type"),
            technology=item["technology"],
            material=item["material"],
            quantity=item["quantity"],
            length=dims.get("length", 0),
            width=dims.get("width", 0),
            height=dims.get("height", 0),
            diameter=dims.get("diameter", 0),
        ))
    return workpieces


def _apply_fields(rfq, data):
    for field in ("title", "description") + REQUIREMENT_FIELDS:
        if field in data:
            setattr(rfq, field, data[field])
    for field in DATE_FIELDS:
        if field in data:
            setattr(rfq, field, parse_datetime(data[field]))
    if "workpieces" in data:
        rfq.workpieces = _build_workpieces(data["workpieces"])


def _require_workpieces(rfq):
    """An RFQ in the pool always carries at least one workpiece."""
    if is_accepting_requests(rfq.status) and not rfq.workpieces:
        raise ValidationError(
            "At least one workpiece is required to open an RFQ",
            {"field": "workpieces"},
        )


def create_rfq(buyer, data) -> RFQ:
    authorize(buyer, "create_rfq")

    status = data.get("status") or DRAFT
    if status not in INITIAL_STATUSES:
        raise ValidationError(
            f"An RFQ can only be created as {' or '.join(INITIAL_STATUSES)}",
            {"field": "status"},
        )

    rfq = RFQ(buyer_id=buyer.id, status=DRAFT)
    _apply_fields(rfq, data)
    if status != DRAFT:
        check_transition(DRAFT, status, BUYER)
        rfq.status = status
    _require_workpieces(rfq)

    db.session.add(rfq)
    db.session.commit()
    logger.info("RFQ %s created by %s as %s", rfq.id, buyer.id, rfq.status)
    return rfq


def update_rfq(buyer, rfq, data) -> RFQ:
    """Edit an RFQ before a supplier is chosen."""
    authorize(buyer, "edit", rfq, "Not authorized to update this RFQ")

    if not is_editable(rfq.status):
        raise ValidationError(
            "Cannot update RFQ after a manufacturer has been selected",
            {"status": rfq.status},
        )

    target = data.get("status")
    _apply_fields(rfq, data)
    if target and target != rfq.status:
        check_transition(rfq.status, target, BUYER)
        rfq.status = target
    _require_workpieces(rfq)

    db.session.commit()
    return rfq


def delete_rfq(buyer, rfq):
    authorize(buyer, "delete", rfq, "Not authorized to delete this RFQ")
    if rfq.status != DRAFT:
        raise ValidationError("Only draft RFQs can be deleted", {"status": rfq.status})

    db.session.delete(rfq)
    db.session.commit()
    logger.info("RFQ %s deleted", rfq.id)


def _open_request(manufacturer, rfq, proposed_lead_time, message=None,
                  technology_match=None, material_match=None):
    """Add a PENDING request to the session and flip a fresh RFQ to REQUESTS_PENDING."""
    if not is_accepting_requests(rfq.status):
        raise ValidationError(
            "RFQ is not accepting requests",
            {"status": rfq.status},
        )

    exists = ManufacturerRequest.query.filter_by(
        rfq_id=rfq.id, manufacturer_id=manufacturer.id
    ).first()
    if exists:
        raise ValidationError(
            "You have already requested this RFQ",
            code="DUPLICATE_REQUEST",
        )

    declared_tech, declared_material = self_declared_matches(manufacturer, rfq)
    req = ManufacturerRequest(
        rfq_id=rfq.id,
        manufacturer_id=manufacturer.id,
        message=message,
        proposed_lead_time=proposed_lead_time,
        technology_match=declared_tech if technology_match is None else technology_match,
        material_match=declared_material if material_match is None else material_match,
        match_score=compute_match_score(manufacturer, rfq),
        status=PENDING,
    )
    db.session.add(req)

    if rfq.status == OPEN_FOR_REQUESTS:
        check_transition(rfq.status, REQUESTS_PENDING, SYSTEM)
        rfq.status = REQUESTS_PENDING

    return req


def _commit_request(req):
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError(
            "You have already requested this RFQ",
            code="DUPLICATE_REQUEST",
        )


def request_rfq(manufacturer, rfq, data) -> ManufacturerRequest:
    authorize(manufacturer, "request", rfq, "Only manufacturers can request RFQs")

    req = _open_request(
        manufacturer,
        rfq,
        proposed_lead_time=data["proposed_lead_time"],
        message=data.get("message"),
        technology_match=data.get("technology_match"),
        material_match=data.get("material_match"),
    )
    _commit_request(req)
    logger.info("Manufacturer %s requested %s (score %s)", manufacturer.id, rfq.id, req.match_score)

    email_service.send_request_received_email(rfq.buyer, rfq, manufacturer)
    return req


def open_request_from_invitation(manufacturer, rfq) -> ManufacturerRequest:
    """Request created on the manufacturer's behalf when they accept an invitation."""
    return _open_request(
        manufacturer,
        rfq,
        proposed_lead_time=current_app.config["DEFAULT_LEAD_TIME_DAYS"],
        message="Accepted invitation",
    )


def _pending_request_of(rfq, request_id) -> ManufacturerRequest:
    req = db.session.get(ManufacturerRequest, request_id)
    if not req or req.rfq_id != rfq.id:
        raise NotFound("Manufacturer request not found")
    if req.status != PENDING:
        raise ValidationError(
            "Manufacturer request has already been processed",
            {"status": req.status},
        )
    return req


def accept_manufacturer(buyer, rfq, request_id) -> RFQ:
    """
    Select the winning request of an RFQ.

    The RFQ row is claimed with a conditional UPDATE that only matches while
    it is still REQUESTS_PENDING without a selected manufacturer, so of two
    concurrent accepts exactly one commits. The winning request, the RFQ and
    the bulk rejection of every other PENDING request land in one commit.
    """
    authorize(buyer, "arbitrate", rfq, "Not authorized to accept manufacturers for this RFQ")
    req = _pending_request_of(rfq, request_id)
    check_transition(rfq.status, SUPPLIER_SELECTED, SYSTEM)

    now = utcnow()
    try:
        claimed = RFQ.query.filter(
            RFQ.id == rfq.id,
            RFQ.status == REQUESTS_PENDING,
            RFQ.selected_manufacturer_id.is_(None),
        ).update(
            {
                RFQ.status: SUPPLIER_SELECTED,
                RFQ.selected_manufacturer_id: req.manufacturer_id,
                RFQ.selected_manufacturer_request_id: req.id,
                RFQ.updated_at: now,
            },
            synchronize_session=False,
        )
        if claimed != 1:
            raise InvalidTransition(
                REQUESTS_PENDING,
                SUPPLIER_SELECTED,
                "A manufacturer has already been selected for this RFQ",
            )

        won = ManufacturerRequest.query.filter(
            ManufacturerRequest.id == req.id,
            ManufacturerRequest.status == PENDING,
        ).update(
            {ManufacturerRequest.status: ACCEPTED, ManufacturerRequest.responded_at: now},
            synchronize_session=False,
        )
        if won != 1:
            raise ValidationError("Manufacturer request has already been processed")

        ManufacturerRequest.query.filter(
            ManufacturerRequest.rfq_id == rfq.id,
            ManufacturerRequest.id != req.id,
            ManufacturerRequest.status == PENDING,
        ).update(
            {
                ManufacturerRequest.status: REJECTED,
                ManufacturerRequest.responded_at: now,
                ManufacturerRequest.rejection_reason: "Another manufacturer was selected",
            },
            synchronize_session=False,
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    db.session.expire_all()
    logger.info("RFQ %s awarded to %s via %s", rfq.id, req.manufacturer_id, req.id)

    rfq = get_rfq_or_404(rfq.id)
    email_service.send_request_accepted_email(rfq.selected_manufacturer, rfq)
    return rfq


def reject_manufacturer(buyer, rfq, request_id, reason=None) -> ManufacturerRequest:
    authorize(buyer, "arbitrate", rfq, "Not authorized to reject manufacturers for this RFQ")
    req = _pending_request_of(rfq, request_id)

    req.status = REJECTED
    req.responded_at = utcnow()
    req.rejection_reason = reason
    db.session.commit()
    logger.info("Request %s on %s rejected", req.id, rfq.id)

    email_service.send_request_rejected_email(req.manufacturer, rfq, reason)
    return req


def withdraw_request(manufacturer, rfq) -> ManufacturerRequest:
    req = ManufacturerRequest.query.filter_by(
        rfq_id=rfq.id, manufacturer_id=manufacturer.id
    ).first()
    if not req:
        raise NotFound("Manufacturer request not found")
    authorize(manufacturer, "withdraw", req)
    if req.status != PENDING:
        raise ValidationError("Only pending requests can be withdrawn", {"status": req.status})

    req.status = WITHDRAWN
    req.responded_at = utcnow()
    db.session.commit()
    return req


def update_rfq_status(actor, rfq, data) -> RFQ:
    """
    Drive the RFQ lifecycle from either party and update production or
    shipping details.
    """
    authorize(actor, "update_status", rfq, "Not authorized to update this RFQ")
    party = rfq_party(actor, rfq)

    target = data.get("status")
    if target and target != rfq.status:
        check_transition(rfq.status, target, party)
        if target == SHIPPED and not (data.get("tracking_info") or rfq.tracking_info):
            raise ValidationError(
                "Tracking information is required to ship an RFQ",
                {"field": "trackingInfo"},
            )
        previous = rfq.status
        rfq.status = target
        _require_workpieces(rfq)
        logger.info("RFQ %s moved %s -> %s by %s", rfq.id, previous, target, party)

    has_details = any(k in data for k in ("production_status", "tracking_info", "shipping_docs"))
    if has_details and rfq.status not in ACTIVE_ORDER_STATUSES:
        raise ValidationError(
            "Production details can only be updated after a supplier is selected",
            {"status": rfq.status},
        )
    if "production_status" in data:
        rfq.production_status = data["production_status"]
    if "tracking_info" in data:
        rfq.tracking_info = data["tracking_info"]
    if "shipping_docs" in data:
        rfq.shipping_docs = data["shipping_docs"]

    db.session.commit()

    if target == SHIPPED:
        email_service.send_rfq_shipped_email(rfq.buyer, rfq)
    return rfq


def my_rfqs_query(user, filters):
    if user.is_buyer:
        query = RFQ.query.filter(RFQ.buyer_id == user.id)
    else:
        requested = db.session.query(ManufacturerRequest.rfq_id).filter(
            ManufacturerRequest.manufacturer_id == user.id
        )
        query = RFQ.query.filter(or_(
            RFQ.id.in_(requested),
            RFQ.selected_manufacturer_id == user.id,
        ))

    if filters.get("status"):
        query = query.filter(RFQ.status == filters["status"])
    if filters.get("technology"):
        query = query.filter(RFQ.workpieces.any(Workpiece.technology == filters["technology"]))
    if filters.get("material"):
        query = query.filter(RFQ.workpieces.any(Workpiece.material.ilike(f"%{filters['material']}%")))
    if filters.get("country"):
        query = query.filter(RFQ.country.ilike(f"%{filters['country']}%"))

    return query.order_by(RFQ.created_at.desc())


def accepted_rfqs_query(manufacturer):
    return RFQ.query.filter(
        RFQ.selected_manufacturer_id == manufacturer.id,
        RFQ.status.in_(ACTIVE_ORDER_STATUSES),
    ).order_by(RFQ.updated_at.desc())


def rfq_detail(viewer, rfq):
    authorize(viewer, "view", rfq, "Not authorized to view this RFQ")
    data = rfq.to_dict(viewer=viewer)

    if rfq.buyer_id == viewer.id:
        requests = sorted(
            rfq.manufacturer_requests,
            key=lambda r: r.match_score or 0,
            reverse=True,
        )
        data["manufacturerRequests"] = [r.to_dict(include_manufacturer=True) for r in requests]
        data["invitations"] = [
            {
                "id": inv.id,
                "manufacturerId": inv.manufacturer_id,
                "status": inv.status,
                "invitedAt": iso(inv.invited_at),
            }
            for inv in rfq.invitations
        ]
    elif viewer.is_manufacturer:
        mine = ManufacturerRequest.query.filter_by(
            rfq_id=rfq.id, manufacturer_id=viewer.id
        ).first()
        data["myRequest"] = mine.to_dict() if mine else None
        invitation = Invitation.query.filter_by(
            rfq_id=rfq.id, manufacturer_id=viewer.id
        ).first()
        data["myInvitation"] = invitation.to_dict() if invitation else None

    return data
