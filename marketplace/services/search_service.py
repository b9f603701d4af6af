"""
Filter builders for RFQ and manufacturer search.

Each builder turns a flat dict of optional filters (query-string values) into
a conjunctive SQLAlchemy query. Free-text fields match case-insensitive
substrings, enum sets match by inclusion. Dimension ceilings are evaluated
together against a single workpiece; the minimum quantity may be met by any
workpiece.
"""
from sqlalchemy import String, and_, cast, or_

from marketplace.extensions import db
from marketplace.models.manufacturer_request import ManufacturerRequest
from marketplace.models.rfq import RFQ
from marketplace.models.user import User, MANUFACTURER, HYBRID
from marketplace.models.workpiece import Workpiece
from marketplace.services.matching import compute_match_score
from marketplace.services.policy import authorize
from marketplace.services.rfq_states import ACCEPTING_REQUESTS
from marketplace.utils.exceptions import ValidationError

DIMENSIONS = ("length", "width", "height", "diameter")
SET_FILTERS = ("technologies", "certifications")


def split_values(value):
    """Query-string sets arrive as ``a,b`` or as repeated keys."""
    if not value:
        return []
    if not isinstance(value, (list, tuple)):
        value = [value]
    items = [part for v in value if v for part in str(v).split(",")]
    return [v.strip() for v in items if v.strip()]


def filters_from_args(args):
    filters = args.to_dict()
    for key in SET_FILTERS:
        filters[key] = args.getlist(key)
    return filters


def _number(filters, key, cast_to=float):
    raw = filters.get(key)
    if raw in (None, ""):
        return None
    try:
        return cast_to(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be a number", {"field": key})


def _escape_like(value):
    return (
        str(value)
        .replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )


def _contains(column, value):
    """Case-insensitive substring match with LIKE wildcards taken literally."""
    return column.ilike(f"%{_escape_like(value)}%", escape="\\")


def _json_contains(column, value):
    # JSON list columns serialise as ["A", "B"]; match the quoted element
    return cast(column, String).like(f'%"{_escape_like(value)}"%', escape="\\")


def _json_contains_text(column, value):
    return _contains(cast(column, String), value)


def _dimension_clause(filters):
    clauses = []
    for axis in DIMENSIONS:
        ceiling = _number(filters, axis)
        if ceiling is not None:
            clauses.append(getattr(Workpiece, axis) <= ceiling)
    return and_(*clauses) if clauses else None


def _min_quantity(filters):
    # minQuantity is accepted as an alias of quantity
    key = "quantity" if filters.get("quantity") not in (None, "") else "minQuantity"
    return _number(filters, key, int)


def filter_rfqs(query, filters):
    keyword = (filters.get("keyword") or "").strip()
    if keyword:
        query = query.filter(or_(
            _contains(RFQ.title, keyword),
            _contains(RFQ.description, keyword),
            _contains(RFQ.request_justification, keyword),
        ))

    if filters.get("partType"):
        query = query.filter(RFQ.workpieces.any(_contains(Workpiece.part_type, filters["partType"])))

    if filters.get("material"):
        query = query.filter(RFQ.workpieces.any(_contains(Workpiece.material, filters["material"])))

    technologies = split_values(filters.get("technologies"))
    if technologies:
        query = query.filter(RFQ.workpieces.any(Workpiece.technology.in_(technologies)))

    if filters.get("country"):
        query = query.filter(_contains(RFQ.country, filters["country"]))
    if filters.get("region"):
        query = query.filter(_contains(RFQ.region, filters["region"]))

    certifications = split_values(filters.get("certifications"))
    if certifications:
        query = query.filter(or_(*[
            _json_contains(RFQ.required_certificates, cert) for cert in certifications
        ]))

    joint = _dimension_clause(filters)
    if joint is not None:
        query = query.filter(RFQ.workpieces.any(joint))

    min_quantity = _min_quantity(filters)
    if min_quantity is not None:
        query = query.filter(RFQ.workpieces.any(Workpiece.quantity >= min_quantity))

    return query


def search_rfqs_query(filters):
    query = RFQ.query.filter(RFQ.status.in_(ACCEPTING_REQUESTS))
    return filter_rfqs(query, filters).order_by(RFQ.created_at.desc())


def pool_query(manufacturer, filters):
    """Open RFQs the manufacturer has not requested yet, excluding their own."""
    authorize(manufacturer, "browse_pool")

    requested = db.session.query(ManufacturerRequest.rfq_id).filter(
        ManufacturerRequest.manufacturer_id == manufacturer.id
    )
    query = RFQ.query.filter(
        RFQ.status.in_(ACCEPTING_REQUESTS),
        RFQ.buyer_id != manufacturer.id,
        ~RFQ.id.in_(requested),
    )
    return filter_rfqs(query, filters).order_by(RFQ.created_at.desc())


def annotate_pool(manufacturer, rfqs):
    items = []
    for rfq in rfqs:
        data = rfq.to_dict(viewer=manufacturer)
        data["matchScore"] = compute_match_score(manufacturer, rfq)
        items.append(data)
    return items


def filter_manufacturers(query, filters):
    keyword = (filters.get("keyword") or "").strip()
    if keyword:
        query = query.filter(or_(_contains(User.company_name, keyword), _contains(User.full_name, keyword)))

    technologies = split_values(filters.get("technologies"))
    if technologies:
        query = query.filter(or_(*[
            _json_contains(User.manufacturing_types, tech) for tech in technologies
        ]))

    certifications = split_values(filters.get("certifications"))
    if certifications:
        query = query.filter(or_(*[
            _json_contains(User.certifications, cert) for cert in certifications
        ]))

    if filters.get("country"):
        query = query.filter(_contains(User.country, filters["country"]))
    if filters.get("region"):
        query = query.filter(_contains(User.region, filters["region"]))
    if filters.get("companySize"):
        query = query.filter(_contains(User.company_size, filters["companySize"]))

    for key, column in (
        ("partType", User.part_types),
        ("material", User.primary_materials),
        ("machinery", User.machinery),
    ):
        if filters.get(key):
            query = query.filter(_json_contains_text(column, filters[key]))

    return query


def search_manufacturers_query(filters):
    query = User.query.filter(
        User.role.in_((MANUFACTURER, HYBRID)),
        User.manufacturer_status == "ACTIVE",
    )
    return filter_manufacturers(query, filters).order_by(User.rating.desc(), User.joined_at.desc())
