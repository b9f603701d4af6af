from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from marketplace.schemas.user_schema import RegisterSchema
from marketplace.services.auth_service import (
    register_user,
    verify_email,
    resend_verification,
    authenticate_user,
    generate_token_for_user,
)
from marketplace.utils.auth_utils import current_user_or_404
from marketplace.utils.exceptions import ValidationError
from marketplace.utils.response_formatter import success_response

bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")

register_schema = RegisterSchema()


@bp.route("/register", methods=["POST"])
def register():
    data = register_schema.load(request.get_json() or {})
    user = register_user(data)
    return success_response(
        user.to_dict(),
        message="Registration successful. Please check your email to verify your account.",
        status=201,
    )


@bp.route("/verify-email", methods=["POST"])
def verify():
    token = (request.get_json() or {}).get("token")
    if not token:
        raise ValidationError("Verification token is required", {"field": "token"})
    user = verify_email(token)
    return success_response(
        {"user": user.to_dict(), "token": generate_token_for_user(user)},
        message="Email verified successfully",
    )


@bp.route("/resend-verification", methods=["POST"])
def resend():
    resend_verification((request.get_json() or {}).get("email"))
    # same answer whether or not the address exists
    return success_response(message="If the account exists, a verification email has been sent")


@bp.route("/login", methods=["POST"])
def login():
    data = request.get_json() or {}
    user = authenticate_user(data.get("email"), data.get("password"))
    return success_response({"user": user.to_dict(), "token": generate_token_for_user(user)})


@bp.route("/me", methods=["GET"])
@jwt_required()
def me():
    return success_response(current_user_or_404().to_dict())
