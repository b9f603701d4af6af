from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from marketplace.schemas.user_schema import ProfileUpdateSchema
from marketplace.services.profile_service import update_profile, public_profile
from marketplace.utils.auth_utils import current_user_or_404
from marketplace.utils.response_formatter import success_response

bp = Blueprint("profile", __name__, url_prefix="/api/v1/profile")

profile_schema = ProfileUpdateSchema()


@bp.route("", methods=["GET"])
@jwt_required()
def get_profile():
    return success_response(current_user_or_404().to_dict())


@bp.route("", methods=["PUT"])
@jwt_required()
def put_profile():
    user = current_user_or_404()
    data = profile_schema.load(request.get_json() or {})
    user = update_profile(user, data)
    return success_response(user.to_dict(), message="Profile updated successfully")


@bp.route("/<user_id>", methods=["GET"])
@jwt_required()
def get_public_profile(user_id):
    return success_response(public_profile(user_id))
