import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from marketplace.extensions import db
from marketplace.models.rating import Rating
from marketplace.models.rfq import RFQ, DELIVERED, CLOSED
from marketplace.models.user import User
from marketplace.services.policy import authorize
from marketplace.services.rfq_service import get_rfq_or_404
from marketplace.services.rfq_states import SYSTEM, check_transition
from marketplace.utils.dates import utcnow
from marketplace.utils.exceptions import InvalidTransition, NotFound, ValidationError

logger = logging.getLogger(__name__)


def rating_stats(manufacturer_id):
    """Average rating (2 decimals) and rating count for a manufacturer."""
    average, count = db.session.query(
        func.avg(Rating.rating), func.count(Rating.id)
    ).filter(Rating.manufacturer_id == manufacturer_id).one()
    return round(float(average or 0), 2), count


def _refresh_manufacturer_stats(manufacturer_id):
    manufacturer = db.session.get(User, manufacturer_id)
    manufacturer.rating, manufacturer.completed_orders = rating_stats(manufacturer_id)


def submit_rating(buyer, data) -> Rating:
    """
    Rate the selected manufacturer of a delivered RFQ and close it.

    The rating row, the DELIVERED -> CLOSED move and the manufacturer's
    aggregates are committed together; the status move is conditional so a
    second rating attempt racing this one cannot close the RFQ twice.
    """
    rfq = get_rfq_or_404(data["rfq_id"])
    authorize(buyer, "rate", rfq, "Not authorized to rate this RFQ")

    if rfq.rating is not None:
        raise ValidationError("RFQ has already been rated", code="DUPLICATE_RATING")
    if not rfq.selected_manufacturer_id:
        raise ValidationError("No manufacturer was selected for this RFQ")
    check_transition(rfq.status, CLOSED, SYSTEM)

    now = utcnow()
    rating = Rating(
        rfq_id=rfq.id,
        buyer_id=buyer.id,
        manufacturer_id=rfq.selected_manufacturer_id,
        rating=data["rating"],
        comment=data.get("comment"),
        categories=data.get("categories") or {},
        created_at=now,
    )

    try:
        db.session.add(rating)
        closed = RFQ.query.filter(
            RFQ.id == rfq.id,
            RFQ.status == DELIVERED,
        ).update(
            {RFQ.status: CLOSED, RFQ.closed_at: now, RFQ.updated_at: now},
            synchronize_session=False,
        )
        if closed != 1:
            raise InvalidTransition(rfq.status, CLOSED)

        db.session.flush()
        _refresh_manufacturer_stats(rating.manufacturer_id)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError("RFQ has already been rated", code="DUPLICATE_RATING")
    except Exception:
        db.session.rollback()
        raise

    db.session.expire(rfq)
    logger.info("RFQ %s rated %s and closed", rfq.id, rating.rating)
    return rating


def manufacturer_ratings(manufacturer_id):
    manufacturer = db.session.get(User, manufacturer_id)
    if not manufacturer or not manufacturer.is_manufacturer:
        raise NotFound("Manufacturer not found")

    ratings = (
        Rating.query.filter_by(manufacturer_id=manufacturer.id)
        .order_by(Rating.created_at.desc())
        .all()
    )
    average, total = rating_stats(manufacturer.id)
    return ratings, average, total


def rating_for_rfq(actor, rfq_id):
    rfq = get_rfq_or_404(rfq_id)
    authorize(actor, "view", rfq, "Not authorized to view this RFQ")
    if rfq.rating is None:
        raise NotFound("Rating not found")
    return rfq.rating
