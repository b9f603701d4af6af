from flask import Blueprint, current_app, request
from flask_jwt_extended import jwt_required

from marketplace.services import search_service
from marketplace.utils.auth_utils import current_user_or_404
from marketplace.utils.pagination import page_args, paginate_query
from marketplace.utils.response_formatter import success_response

bp = Blueprint("search", __name__, url_prefix="/api/v1/search")


@bp.route("/rfqs", methods=["GET"])
@jwt_required()
def search_rfqs():
    user = current_user_or_404()
    page, limit = page_args(request.args, current_app.config["DEFAULT_PAGE_SIZE"])
    query = search_service.search_rfqs_query(search_service.filters_from_args(request.args))
    items, meta = paginate_query(query, page, limit)
    return success_response([r.to_dict(viewer=user) for r in items], pagination=meta)


@bp.route("/manufacturers", methods=["GET"])
@jwt_required()
def search_manufacturers():
    page, limit = page_args(request.args, current_app.config["DEFAULT_PAGE_SIZE"])
    query = search_service.search_manufacturers_query(search_service.filters_from_args(request.args))
    items, meta = paginate_query(query, page, limit)
    return success_response([u.to_public_dict() for u in items], pagination=meta)
