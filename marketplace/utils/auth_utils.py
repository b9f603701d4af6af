from flask_jwt_extended import get_jwt_identity

from marketplace.extensions import bcrypt, db
from marketplace.models.user import User
from marketplace.utils.exceptions import NotFound


def hash_password(password: str) -> str:
    return bcrypt.generate_password_hash(password).decode("utf-8")

def check_password(password, hashed_password):
    return bcrypt.check_password_hash(hashed_password, password)


def current_user_or_404() -> User:
    """Load the user behind the bearer token of the current request."""
    user = db.session.get(User, get_jwt_identity())
    if not user:
        raise NotFound("User not found")
    return user
