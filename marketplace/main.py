from flask import Flask
from marshmallow import ValidationError as SchemaValidationError
from werkzeug.exceptions import HTTPException
from .config import CONFIGS
from .extensions import db, migrate, jwt, ma, cors, bcrypt
import logging
import os


def create_app(config_name=None):
    app = Flask(__name__, instance_relative_config=False)
    env = config_name or os.getenv("FLASK_ENV", "development")
    app.config.from_object(CONFIGS.get(env, CONFIGS["development"]))

    if not app.debug and not app.testing:
        app.logger.setLevel(logging.INFO)

    # models must be imported before migrations or create_all see them
    from marketplace.models import user, rfq, workpiece, manufacturer_request, invitation, rating  # noqa: F401

    # initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    ma.init_app(app)
    origins = [o.strip() for o in app.config["CORS_ORIGINS"].split(",")]
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": origins}},
        supports_credentials=True,
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )
    bcrypt.init_app(app)

    # register blueprints
    from marketplace.routes.auth_routes import bp as auth_bp
    from marketplace.routes.profile_routes import bp as profile_bp
    from marketplace.routes.rfq_routes import bp as rfq_bp
    from marketplace.routes.invitation_routes import bp as invitation_bp
    from marketplace.routes.rating_routes import bp as rating_bp
    from marketplace.routes.search_routes import bp as search_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(rfq_bp)
    app.register_blueprint(invitation_bp)
    app.register_blueprint(rating_bp)
    app.register_blueprint(search_bp)

    register_error_handlers(app)
    register_jwt_handlers()

    return app


def register_error_handlers(app):
    from marketplace.utils.exceptions import ServiceError
    from marketplace.utils.response_formatter import error_response

    @app.errorhandler(ServiceError)
    def service_error(e):
        db.session.rollback()
        return error_response(e.code, e.message, e.details, status=e.status)

    @app.errorhandler(SchemaValidationError)
    def schema_error(e):
        return error_response("VALIDATION_ERROR", "Invalid request data", e.messages, status=400)

    @app.errorhandler(HTTPException)
    def http_error(e):
        return error_response(e.name.upper().replace(" ", "_"), e.description, status=e.code)

    @app.errorhandler(Exception)
    def server_error(e):
        db.session.rollback()
        app.logger.exception("Unhandled error: %s", e)
        return error_response("SERVER_ERROR", f"Server error: {e}", status=500)


def register_jwt_handlers():
    from marketplace.utils.response_formatter import error_response

    @jwt.unauthorized_loader
    def missing_token(reason):
        return error_response("UNAUTHORIZED", reason, status=401)

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return error_response("UNAUTHORIZED", reason, status=401)

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return error_response("TOKEN_EXPIRED", "Token has expired", status=401)
