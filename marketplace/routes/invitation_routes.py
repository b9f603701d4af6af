from flask import Blueprint, current_app, request
from flask_jwt_extended import jwt_required

from marketplace.schemas.request_schema import DeclineSchema, InvitationSchema
from marketplace.services import invitation_service
from marketplace.utils.auth_utils import current_user_or_404
from marketplace.utils.pagination import page_args, paginate_query
from marketplace.utils.response_formatter import success_response

bp = Blueprint("invitations", __name__, url_prefix="/api/v1/invitations")

invitation_schema = InvitationSchema()
decline_schema = DeclineSchema()


@bp.route("", methods=["POST"])
@jwt_required()
def send_invitation():
    user = current_user_or_404()
    data = invitation_schema.load(request.get_json() or {})
    invitation = invitation_service.send_invitation(user, data)
    return success_response(invitation.to_dict(), message="Invitation sent successfully", status=201)


# received by the calling manufacturer
@bp.route("", methods=["GET"])
@jwt_required()
def my_invitations():
    user = current_user_or_404()
    page, limit = page_args(request.args, current_app.config["DEFAULT_PAGE_SIZE"])
    query = invitation_service.received_invitations_query(user, request.args.get("status"))
    items, meta = paginate_query(query, page, limit)
    return success_response([i.to_dict() for i in items], pagination=meta)


@bp.route("/sent", methods=["GET"])
@jwt_required()
def sent_invitations():
    user = current_user_or_404()
    page, limit = page_args(request.args, current_app.config["DEFAULT_PAGE_SIZE"])
    query = invitation_service.sent_invitations_query(user, request.args.get("rfqId"))
    items, meta = paginate_query(query, page, limit)
    return success_response([i.to_dict() for i in items], pagination=meta)


@bp.route("/<invitation_id>", methods=["GET"])
@jwt_required()
def get_invitation(invitation_id):
    user = current_user_or_404()
    invitation = invitation_service.invitation_detail(user, invitation_id)
    return success_response(invitation.to_dict())


@bp.route("/<invitation_id>/accept", methods=["POST"])
@jwt_required()
def accept_invitation(invitation_id):
    user = current_user_or_404()
    invitation, req = invitation_service.accept_invitation(user, invitation_id)
    return success_response(
        {"invitation": invitation.to_dict(), "manufacturerRequest": req.to_dict()},
        message="Invitation accepted",
    )


@bp.route("/<invitation_id>/decline", methods=["POST"])
@jwt_required()
def decline_invitation(invitation_id):
    user = current_user_or_404()
    data = decline_schema.load(request.get_json(silent=True) or {})
    invitation = invitation_service.decline_invitation(user, invitation_id, data.get("decline_reason"))
    return success_response(invitation.to_dict(), message="Invitation declined")
