TECHNOLOGY_WEIGHT = 30
MATERIAL_WEIGHT = 20
CERTIFICATE_WEIGHT = 10
DIMENSION_WEIGHT = 20
REGION_WEIGHT = 10
MAX_SCORE = 100


def _fits(dimensions, max_dimensions) -> bool:
    if not max_dimensions:
        return False
    limits = [max_dimensions.get(axis) or 0 for axis in ("length", "width", "height")]
    # an all-zero envelope means the manufacturer never declared one
    if not any(limits):
        return False
    return all(
        (dimensions.get(axis) or 0) <= limit
        for axis, limit in zip(("length", "width", "height"), limits)
    )


def compute_match_score(manufacturer, rfq) -> int:
    """
    Score how well a manufacturer's declared capabilities fit an RFQ, 0-100.

    Only the first workpiece is considered for technology, material and size.
    Signals are independent and simply summed, then capped.
    """
    score = 0
    workpiece = rfq.first_workpiece

    if workpiece is not None:
        if workpiece.technology and workpiece.technology in (manufacturer.manufacturing_types or []):
            score += TECHNOLOGY_WEIGHT

        if workpiece.material and workpiece.material in (manufacturer.primary_materials or []):
            score += MATERIAL_WEIGHT

        if _fits(workpiece.dimensions, manufacturer.max_dimensions):
            score += DIMENSION_WEIGHT

    held = set(manufacturer.certifications or [])
    score += CERTIFICATE_WEIGHT * sum(1 for cert in (rfq.required_certificates or []) if cert in held)

    if rfq.region and rfq.region in (manufacturer.regions_served or []):
        score += REGION_WEIGHT

    return min(score, MAX_SCORE)


def self_declared_matches(manufacturer, rfq):
    """(technology_match, material_match) defaults when the manufacturer sends none."""
    workpiece = rfq.first_workpiece
    if workpiece is None:
        return False, False
    return (
        workpiece.technology in (manufacturer.manufacturing_types or []),
        workpiece.material in (manufacturer.primary_materials or []),
    )
