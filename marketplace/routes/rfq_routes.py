from flask import Blueprint, current_app, request
from flask_jwt_extended import jwt_required

from marketplace.schemas.request_schema import ArbitrationSchema, ManufacturerRequestSchema
from marketplace.schemas.rfq_schema import RFQSchema, StatusUpdateSchema
from marketplace.services import rfq_service, search_service
from marketplace.services.policy import authorize
from marketplace.utils.auth_utils import current_user_or_404
from marketplace.utils.pagination import page_args, paginate_query
from marketplace.utils.response_formatter import success_response

bp = Blueprint("rfqs", __name__, url_prefix="/api/v1/rfqs")

rfq_schema = RFQSchema()
rfq_update_schema = RFQSchema(partial=True)
status_schema = StatusUpdateSchema()
request_schema = ManufacturerRequestSchema()
arbitration_schema = ArbitrationSchema()


# ------------------------------------------------------------
#  POST /rfqs: buyer creates an RFQ (DRAFT or OPEN_FOR_REQUESTS)
# ------------------------------------------------------------
@bp.route("", methods=["POST"])
@jwt_required()
def create_rfq():
    user = current_user_or_404()
    data = rfq_schema.load(request.get_json() or {})
    rfq = rfq_service.create_rfq(user, data)
    return success_response(rfq.to_dict(viewer=user), message="RFQ created successfully", status=201)


# ------------------------------------------------------------
#  GET /rfqs/my-rfqs: buyer's own RFQs, or a manufacturer's engagements
# ------------------------------------------------------------
@bp.route("/my-rfqs", methods=["GET"])
@jwt_required()
def my_rfqs():
    user = current_user_or_404()
    page, limit = page_args(request.args, current_app.config["DEFAULT_PAGE_SIZE"])
    query = rfq_service.my_rfqs_query(user, request.args)
    items, meta = paginate_query(query, page, limit)
    return success_response([r.to_dict(viewer=user) for r in items], pagination=meta)


# ------------------------------------------------------------
#  GET /rfqs/pool: open RFQs for manufacturers, scored
# ------------------------------------------------------------
@bp.route("/pool", methods=["GET"])
@jwt_required()
def rfq_pool():
    user = current_user_or_404()
    page, limit = page_args(request.args, current_app.config["POOL_PAGE_SIZE"])
    query = search_service.pool_query(user, search_service.filters_from_args(request.args))
    items, meta = paginate_query(query, page, limit)
    return success_response(search_service.annotate_pool(user, items), pagination=meta)


# ------------------------------------------------------------
#  GET /rfqs/accepted: RFQs awarded to the calling manufacturer
# ------------------------------------------------------------
@bp.route("/accepted", methods=["GET"])
@jwt_required()
def accepted_rfqs():
    user = current_user_or_404()
    authorize(user, "browse_pool")
    page, limit = page_args(request.args, current_app.config["DEFAULT_PAGE_SIZE"])
    items, meta = paginate_query(rfq_service.accepted_rfqs_query(user), page, limit)
    return success_response([r.to_dict(viewer=user) for r in items], pagination=meta)


@bp.route("/<rfq_id>", methods=["GET"])
@jwt_required()
def get_rfq(rfq_id):
    user = current_user_or_404()
    rfq = rfq_service.get_rfq_or_404(rfq_id)
    return success_response(rfq_service.rfq_detail(user, rfq))


@bp.route("/<rfq_id>", methods=["PUT"])
@jwt_required()
def update_rfq(rfq_id):
    user = current_user_or_404()
    rfq = rfq_service.get_rfq_or_404(rfq_id)
    data = rfq_update_schema.load(request.get_json() or {})
    rfq = rfq_service.update_rfq(user, rfq, data)
    return success_response(rfq.to_dict(viewer=user), message="RFQ updated successfully")


@bp.route("/<rfq_id>", methods=["DELETE"])
@jwt_required()
def delete_rfq(rfq_id):
    user = current_user_or_404()
    rfq = rfq_service.get_rfq_or_404(rfq_id)
    rfq_service.delete_rfq(user, rfq)
    return success_response(message="RFQ deleted successfully")


# ------------------------------------------------------------
#  Manufacturer requests and arbitration
# ------------------------------------------------------------
@bp.route("/<rfq_id>/request", methods=["POST"])
@jwt_required()
def request_rfq(rfq_id):
    user = current_user_or_404()
    rfq = rfq_service.get_rfq_or_404(rfq_id)
    data = request_schema.load(request.get_json() or {})
    req = rfq_service.request_rfq(user, rfq, data)
    return success_response(req.to_dict(), message="Request sent successfully", status=201)


@bp.route("/<rfq_id>/withdraw-request", methods=["POST"])
@jwt_required()
def withdraw_request(rfq_id):
    user = current_user_or_404()
    rfq = rfq_service.get_rfq_or_404(rfq_id)
    req = rfq_service.withdraw_request(user, rfq)
    return success_response(req.to_dict(), message="Request withdrawn")


@bp.route("/<rfq_id>/accept-manufacturer", methods=["POST"])
@jwt_required()
def accept_manufacturer(rfq_id):
    user = current_user_or_404()
    rfq = rfq_service.get_rfq_or_404(rfq_id)
    data = arbitration_schema.load(request.get_json() or {})
    rfq = rfq_service.accept_manufacturer(user, rfq, data["manufacturer_request_id"])
    return success_response(rfq.to_dict(viewer=user), message="Manufacturer accepted successfully")


@bp.route("/<rfq_id>/reject-manufacturer", methods=["POST"])
@jwt_required()
def reject_manufacturer(rfq_id):
    user = current_user_or_404()
    rfq = rfq_service.get_rfq_or_404(rfq_id)
    data = arbitration_schema.load(request.get_json() or {})
    req = rfq_service.reject_manufacturer(
        user, rfq, data["manufacturer_request_id"], data.get("rejection_reason")
    )
    return success_response(req.to_dict(), message="Manufacturer request rejected")


# ------------------------------------------------------------
#  PUT /rfqs/<id>/status: lifecycle moves and production details
# ------------------------------------------------------------
@bp.route("/<rfq_id>/status", methods=["PUT"])
@jwt_required()
def update_status(rfq_id):
    user = current_user_or_404()
    rfq = rfq_service.get_rfq_or_404(rfq_id)
    data = status_schema.load(request.get_json() or {})
    rfq = rfq_service.update_rfq_status(user, rfq, data)
    return success_response(rfq.to_dict(viewer=user), message="RFQ status updated successfully")
