from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from services import friend_service


friendship_api_bp = Blueprint("friendship", __name__)


# =================================
#       Friendship Endpoints
# =================================


@friendship_api_bp.route("/friends/add/<int:receiver_id>", methods=["POST"])
@login_required
def send_friend_request(receiver_id):
    friend_request = friend_service.send_friend_request(current_user.id, receiver_id)
    return jsonify(friend_request.to_dict()), 201


@friendship_api_bp.route(
    "/friends/friendrequest/<int:request_id>/accept", methods=["POST"]
)
@login_required
def accept_friend_request(request_id):
    friend_request = friend_service.accept_friend_request(request_id, current_user.id)
    return jsonify(friend_request.to_dict()), 200


@friendship_api_bp.route(
    "/friends/friendrequest/<int:request_id>/reject", methods=["POST"]
)
@login_required
def reject_friend_request(request_id):
    friend_request = friend_service.reject_friend_request(request_id, current_user.id)
    return jsonify(friend_request.to_dict()), 200


@friendship_api_bp.route("/friends/friendrequests/received", methods=["GET"])
@login_required
def get_received_requests():
    requests = friend_service.get_pending_received_requests(current_user.id)
    return jsonify([req.to_dict() for req in requests]), 200


@friendship_api_bp.route("/friends/friendrequests/sent", methods=["GET"])
@login_required
def get_sent_requests():
    requests = friend_service.get_pending_sent_requests(current_user.id)
    return jsonify([req.to_dict() for req in requests]), 200


@friendship_api_bp.route("/friends/remove/<int:friend_id>", methods=["DELETE"])
@login_required
def remove_friend(friend_id):
    friend_service.remove_friend(current_user.id, friend_id)
    return jsonify({"message": "Friend removed successfully"}), 200


@friendship_api_bp.route("/friends", methods=["GET"])
@login_required
def get_friend_list():
    friends = friend_service.get_friends(current_user.id)
    return jsonify([friend.to_summary() for friend in friends]), 200
