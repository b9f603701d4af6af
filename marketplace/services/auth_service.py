import logging
from datetime import timedelta

from flask import current_app
from flask_jwt_extended import create_access_token
from itsdangerous import BadData, SignatureExpired

from marketplace.extensions import db
from marketplace.models.user import User
from marketplace.services import email_service
from marketplace.services.profile_service import recompute_completeness
from marketplace.utils.auth_utils import hash_password, check_password
from marketplace.utils.email_tokens import (
    generate_email_verification_token,
    decode_email_verification_token,
)
from marketplace.utils.exceptions import ServiceError, ValidationError

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "full_name", "company_name", "phone_number", "website", "address", "city",
    "state", "zip_code", "country", "region", "industry_vertical",
    "manufacturing_types", "primary_materials", "certifications",
    "max_dimensions", "company_size", "years_in_business",
)


def register_user(data) -> User:
    email = data["email"].strip().lower()
    if User.query.filter_by(email=email).first():
        raise ServiceError(
            code="USER_EXISTS",
            message="User with that email already exists",
            details={"field": "email"},
            status=409,
        )

    user = User(
        email=email,
        password_hash=hash_password(data["password"]),
        role=data["role"],
        **{k: data[k] for k in PROFILE_FIELDS if k in data},
    )
    if user.is_manufacturer:
        user.manufacturer_status = "PENDING_REVIEW"
    recompute_completeness(user)

    db.session.add(user)
    db.session.commit()
    logger.info("Registered %s as %s", user.id, user.role)

    email_service.send_verification_email(user, generate_email_verification_token(user.id))
    return user


def verify_email(token) -> User:
    try:
        user_id = decode_email_verification_token(token)
    except SignatureExpired:
        raise ValidationError("Verification link has expired", code="TOKEN_EXPIRED")
    except BadData:
        raise ValidationError("Invalid verification token", code="TOKEN_INVALID")

    user = db.session.get(User, user_id)
    if not user:
        raise ValidationError("Invalid verification token", code="TOKEN_INVALID")

    if not user.is_verified:
        user.is_verified = True
        user.status = "ACTIVE"
        if user.is_manufacturer:
            user.manufacturer_status = "ACTIVE"
        db.session.commit()
    return user


def resend_verification(email):
    """Silently ignores unknown or already verified addresses."""
    user = User.query.filter_by(email=(email or "").strip().lower()).first()
    if user and not user.is_verified:
        email_service.send_verification_email(user, generate_email_verification_token(user.id))


def authenticate_user(email, password) -> User:
    user = User.query.filter_by(email=(email or "").strip().lower()).first()
    if not user or not check_password(password or "", user.password_hash):
        raise ServiceError(code="AUTH_FAILED", message="Invalid credentials", status=401)
    if not user.is_verified:
        raise ServiceError(
            code="EMAIL_NOT_VERIFIED",
            message="Please verify your email before logging in",
            status=401,
        )
    if user.status == "SUSPENDED":
        raise ServiceError(code="ACCOUNT_SUSPENDED", message="Account suspended", status=403)
    return user


def generate_token_for_user(user):
    return create_access_token(
        identity=user.id,
        expires_delta=timedelta(seconds=current_app.config.get("ACCESS_EXPIRES", 86400)),
    )
