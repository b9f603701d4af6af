from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from marketplace.schemas.rating_schema import RatingSchema
from marketplace.services import rating_service
from marketplace.utils.auth_utils import current_user_or_404
from marketplace.utils.exceptions import ValidationError
from marketplace.utils.response_formatter import success_response

bp = Blueprint("ratings", __name__, url_prefix="/api/v1/ratings")

rating_schema = RatingSchema()


@bp.route("", methods=["POST"])
@jwt_required()
def submit_rating():
    user = current_user_or_404()
    data = rating_schema.load(request.get_json() or {})
    rating = rating_service.submit_rating(user, data)
    return success_response(rating.to_dict(), message="Rating submitted successfully", status=201)


@bp.route("", methods=["GET"])
@jwt_required()
def manufacturer_ratings():
    manufacturer_id = request.args.get("manufacturerId")
    if not manufacturer_id:
        raise ValidationError("manufacturerId is required", {"field": "manufacturerId"})

    ratings, average, total = rating_service.manufacturer_ratings(manufacturer_id)
    return success_response(
        [r.to_dict() for r in ratings],
        averageRating=average,
        totalRatings=total,
    )


@bp.route("/rfq/<rfq_id>", methods=["GET"])
@jwt_required()
def rfq_rating(rfq_id):
    user = current_user_or_404()
    rating = rating_service.rating_for_rfq(user, rfq_id)
    return success_response(rating.to_dict())
