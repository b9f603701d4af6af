import pytest

from marketplace.models.rfq import (
    DRAFT, OPEN_FOR_REQUESTS, REQUESTS_PENDING, SUPPLIER_SELECTED,
    IN_PRODUCTION, SHIPPED, DELIVERED, CLOSED, EXPIRED, CANCELLED,
)
from marketplace.services.rfq_states import (
    BUYER, MANUFACTURER, SYSTEM,
    allowed_targets, can_transition, check_transition, is_editable,
)
from marketplace.utils.exceptions import InvalidTransition, ValidationError


@pytest.mark.parametrize("current,target,party", [
    (DRAFT, OPEN_FOR_REQUESTS, BUYER),
    (SUPPLIER_SELECTED, IN_PRODUCTION, MANUFACTURER),
    (SUPPLIER_SELECTED, IN_PRODUCTION, BUYER),
    (IN_PRODUCTION, SHIPPED, MANUFACTURER),
    (SHIPPED, DELIVERED, BUYER),
    (OPEN_FOR_REQUESTS, REQUESTS_PENDING, SYSTEM),
    (REQUESTS_PENDING, SUPPLIER_SELECTED, SYSTEM),
    (DELIVERED, CLOSED, SYSTEM),
])
def test_allowed_moves(current, target, party):
    assert can_transition(current, target, party)
    check_transition(current, target, party)


@pytest.mark.parametrize("current,target", [
    (DRAFT, SHIPPED),
    (OPEN_FOR_REQUESTS, SUPPLIER_SELECTED),
    (IN_PRODUCTION, DELIVERED),
    (DELIVERED, SHIPPED),
    (CLOSED, DRAFT),
])
def test_moves_off_the_graph_are_rejected(current, target):
    assert not can_transition(current, target)
    with pytest.raises(InvalidTransition) as exc:
        check_transition(current, target, BUYER)
    assert exc.value.status == 400
    assert exc.value.details == {"from": current, "to": target}


def test_wrong_party_is_rejected():
    with pytest.raises(InvalidTransition):
        check_transition(IN_PRODUCTION, SHIPPED, BUYER)
    with pytest.raises(InvalidTransition):
        check_transition(SHIPPED, DELIVERED, MANUFACTURER)


def test_system_moves_cannot_be_requested_by_a_party():
    with pytest.raises(InvalidTransition) as exc:
        check_transition(DELIVERED, CLOSED, BUYER)
    assert "automatically" in exc.value.message


@pytest.mark.parametrize("status", [CLOSED, EXPIRED, CANCELLED])
def test_terminal_statuses_are_absorbing(status):
    assert allowed_targets(status) == set()


def test_unknown_status():
    with pytest.raises(ValidationError):
        check_transition(DRAFT, "ARCHIVED", BUYER)


def test_editable_only_before_selection():
    assert is_editable(DRAFT)
    assert is_editable(REQUESTS_PENDING)
    assert not is_editable(SUPPLIER_SELECTED)
    assert not is_editable(CLOSED)
