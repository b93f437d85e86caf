from flask import Blueprint, request, jsonify
from flask_login import current_user, login_required

from services import invitation_service


invitation_api_bp = Blueprint("invitation", __name__)


def _pending_only():
    return request.args.get("pending", "false").lower() in ("1", "true", "yes")


# =================================
#       Invitation Endpoints
# =================================


@invitation_api_bp.route(
    "/groups/invitations/send/<int:group_id>/<int:receiver_id>", methods=["POST"]
)
@login_required
def send_invitation(group_id, receiver_id):
    invitation = invitation_service.send_invitation(
        group_id, current_user.id, receiver_id
    )
    return jsonify(invitation.to_dict()), 201


@invitation_api_bp.route(
    "/groups/invitations/<int:invitation_id>/accept", methods=["POST"]
)
@login_required
def accept_invitation(invitation_id):
    invitation = invitation_service.accept_invitation(invitation_id, current_user.id)
    return jsonify(invitation.to_dict()), 200


@invitation_api_bp.route(
    "/groups/invitations/<int:invitation_id>/reject", methods=["POST"]
)
@login_required
def reject_invitation(invitation_id):
    invitation = invitation_service.reject_invitation(invitation_id, current_user.id)
    return jsonify(invitation.to_dict()), 200


@invitation_api_bp.route("/groups/invitations/<int:invitation_id>", methods=["DELETE"])
@login_required
def delete_invitation(invitation_id):
    invitation_service.delete_invitation(invitation_id, current_user.id)
    return jsonify({"message": "Invitation deleted successfully"}), 200


@invitation_api_bp.route("/groups/invitations/received", methods=["GET"])
@login_required
def get_received_invitations():
    invitations = invitation_service.get_received_invitations(
        current_user.id, pending_only=_pending_only()
    )
    return jsonify([invitation.to_dict() for invitation in invitations]), 200


@invitation_api_bp.route("/groups/invitations/sent", methods=["GET"])
@login_required
def get_sent_invitations():
    invitations = invitation_service.get_sent_invitations(
        current_user.id, pending_only=_pending_only()
    )
    return jsonify([invitation.to_dict() for invitation in invitations]), 200
