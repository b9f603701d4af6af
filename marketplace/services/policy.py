"""
Structural access rules.

Who may act on an entity is derived from the entity itself: the buyer who
owns an RFQ, the manufacturer it selected, the owner of a request, the
recipient of an invitation. Routes and services call ``authorize`` with the
actor, an action name and the entity instead of re-checking ownership inline.
"""
from marketplace.extensions import db
from marketplace.models.invitation import Invitation
from marketplace.models.manufacturer_request import ManufacturerRequest
from marketplace.models.rfq import RFQ
from marketplace.services.rfq_states import BUYER, MANUFACTURER, is_accepting_requests
from marketplace.utils.exceptions import AccessDenied


def is_rfq_buyer(actor, rfq) -> bool:
    return rfq.buyer_id == actor.id


def is_selected_manufacturer(actor, rfq) -> bool:
    return rfq.selected_manufacturer_id is not None and rfq.selected_manufacturer_id == actor.id


def rfq_party(actor, rfq):
    """The role ``actor`` plays on ``rfq``: buyer, manufacturer or None."""
    if is_rfq_buyer(actor, rfq):
        return BUYER
    if is_selected_manufacturer(actor, rfq):
        return MANUFACTURER
    return None


def _has_request(actor, rfq):
    return db.session.query(
        ManufacturerRequest.query.filter_by(rfq_id=rfq.id, manufacturer_id=actor.id).exists()
    ).scalar()


def _has_invitation(actor, rfq):
    return db.session.query(
        Invitation.query.filter_by(rfq_id=rfq.id, manufacturer_id=actor.id).exists()
    ).scalar()


def _can_view_rfq(actor, rfq):
    if rfq_party(actor, rfq):
        return True
    if not actor.is_manufacturer:
        return False
    if is_accepting_requests(rfq.status):
        return True
    return _has_request(actor, rfq) or _has_invitation(actor, rfq)


RFQ_RULES = {
    "view": _can_view_rfq,
    "edit": is_rfq_buyer,
    "delete": is_rfq_buyer,
    "arbitrate": is_rfq_buyer,
    "invite": is_rfq_buyer,
    "rate": is_rfq_buyer,
    "request": lambda actor, rfq: actor.is_manufacturer and not is_rfq_buyer(actor, rfq),
    "update_status": lambda actor, rfq: rfq_party(actor, rfq) is not None,
}

REQUEST_RULES = {
    "withdraw": lambda actor, req: req.manufacturer_id == actor.id,
}

INVITATION_RULES = {
    "respond": lambda actor, inv: inv.manufacturer_id == actor.id,
    "view": lambda actor, inv: actor.id in (inv.manufacturer_id, inv.buyer_id),
}

RULES = {
    RFQ: RFQ_RULES,
    ManufacturerRequest: REQUEST_RULES,
    Invitation: INVITATION_RULES,
}

ROLE_RULES = {
    "create_rfq": lambda actor: actor.is_buyer,
    "browse_pool": lambda actor: actor.is_manufacturer,
    "list_invitations": lambda actor: actor.is_manufacturer,
}

ROLE_MESSAGES = {
    "create_rfq": "Only buyers can create RFQs",
    "browse_pool": "Only manufacturers can access RFQ pool",
    "list_invitations": "Only manufacturers receive invitations",
}


def can(actor, action, entity=None) -> bool:
    if entity is None:
        rule = ROLE_RULES.get(action)
        return bool(rule and rule(actor))

    rule = RULES.get(type(entity), {}).get(action)
    if rule is None:
        return False
    return bool(rule(actor, entity))


def authorize(actor, action, entity=None, message=None):
    if not can(actor, action, entity):
        raise AccessDenied(message or ROLE_MESSAGES.get(action, "Not authorized"))
