"""
RFQ lifecycle.

Every status change goes through ``TRANSITIONS``: current status -> next
status -> the parties allowed to drive that move. A target that is missing
for the current status is rejected, which leaves CLOSED, EXPIRED and
CANCELLED absorbing. ``SYSTEM`` moves happen as side effects of other
operations (a first manufacturer request, accepting a request, submitting a
rating) and are never accepted from the generic status endpoint.
"""
from marketplace.models.rfq import (
    DRAFT,
    OPEN_FOR_REQUESTS,
    REQUESTS_PENDING,
    SUPPLIER_SELECTED,
    IN_PRODUCTION,
    SHIPPED,
    DELIVERED,
    CLOSED,
    RFQ_STATUSES,
)
from marketplace.utils.exceptions import InvalidTransition, ValidationError

BUYER = "buyer"
MANUFACTURER = "manufacturer"
SYSTEM = "system"

TRANSITIONS = {
    DRAFT: {OPEN_FOR_REQUESTS: {BUYER}},
    OPEN_FOR_REQUESTS: {REQUESTS_PENDING: {SYSTEM}},
    REQUESTS_PENDING: {SUPPLIER_SELECTED: {SYSTEM}},
    SUPPLIER_SELECTED: {IN_PRODUCTION: {MANUFACTURER, BUYER}},
    IN_PRODUCTION: {SHIPPED: {MANUFACTURER}},
    SHIPPED: {DELIVERED: {BUYER}},
    DELIVERED: {CLOSED: {SYSTEM}},
}

# Buyers may edit the RFQ itself only before a supplier is chosen
EDITABLE_STATUSES = (DRAFT, OPEN_FOR_REQUESTS, REQUESTS_PENDING)
ACCEPTING_REQUESTS = (OPEN_FOR_REQUESTS, REQUESTS_PENDING)
ACTIVE_ORDER_STATUSES = (SUPPLIER_SELECTED, IN_PRODUCTION, SHIPPED, DELIVERED)

# Statuses a buyer may pick when creating an RFQ
INITIAL_STATUSES = (DRAFT, OPEN_FOR_REQUESTS)


def allowed_targets(current):
    return set(TRANSITIONS.get(current, {}))


def can_transition(current, target, party=SYSTEM):
    parties = TRANSITIONS.get(current, {}).get(target)
    if not parties:
        return False
    return party in parties or party == SYSTEM


def check_transition(current, target, party=SYSTEM):
    """Raise unless ``party`` may move an RFQ from ``current`` to ``target``."""
    if target not in RFQ_STATUSES:
        raise ValidationError(f"Unknown RFQ status {target}", {"field": "status"})

    parties = TRANSITIONS.get(current, {}).get(target)
    if not parties:
        raise InvalidTransition(current, target)

    if party != SYSTEM and party not in parties:
        if parties == {SYSTEM}:
            raise InvalidTransition(
                current,
                target,
                f"Status {target} is set automatically and cannot be requested directly",
            )
        raise InvalidTransition(
            current,
            target,
            f"The {party} cannot move this RFQ from {current} to {target}",
        )


def is_editable(status):
    return status in EDITABLE_STATUSES


def is_accepting_requests(status):
    return status in ACCEPTING_REQUESTS
