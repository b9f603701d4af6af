from itsdangerous import URLSafeTimedSerializer
from flask import current_app

SALT = "email-verify"


def _serializer():
    return URLSafeTimedSerializer(current_app.config["JWT_SECRET_KEY"], salt=SALT)


def generate_email_verification_token(user_id: str) -> str:
    return _serializer().dumps({"uid": user_id})


def decode_email_verification_token(token: str) -> str:
    """User id behind ``token``; raises itsdangerous errors when bad or expired."""
    data = _serializer().loads(token, max_age=current_app.config["EMAIL_VERIFY_EXPIRES"])
    return data["uid"]
