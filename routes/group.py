from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from routes import get_json_body
from services import group_service, pool_service


group_api_bp = Blueprint("group", __name__)


# =================================
#       Group Endpoints
# =================================


@group_api_bp.route("/groups", methods=["POST"])
@login_required
def create_group():
    data = get_json_body()
    group = group_service.create_group(data.get("groupName"), current_user.id)
    return jsonify(group.to_dict()), 201


@group_api_bp.route("/groups", methods=["GET"])
@login_required
def get_groups():
    groups = group_service.get_groups_for_user(current_user.id)
    return jsonify([group.to_dict() for group in groups]), 200


@group_api_bp.route("/groups/<int:group_id>", methods=["GET"])
@login_required
def get_group(group_id):
    return jsonify(group_service.get_group(group_id, current_user.id).to_dict()), 200


@group_api_bp.route("/groups/<int:group_id>", methods=["PUT"])
@login_required
def update_group(group_id):
    group = group_service.update_group_name(
        group_id, current_user.id, get_json_body().get("groupName")
    )
    return jsonify(group.to_dict()), 200


@group_api_bp.route("/groups/<int:group_id>", methods=["DELETE"])
@login_required
def delete_group(group_id):
    group_service.delete_group(group_id, current_user.id)
    return jsonify({"message": "Group deleted successfully"}), 200


# =================================
#       Membership
# =================================


@group_api_bp.route("/groups/<int:group_id>/members", methods=["GET"])
@login_required
def get_members(group_id):
    members = group_service.get_members(group_id, current_user.id)
    return jsonify([member.to_summary() for member in members]), 200


@group_api_bp.route(
    "/groups/<int:group_id>/members/<int:member_id>", methods=["DELETE"]
)
@login_required
def remove_member(group_id, member_id):
    group_service.remove_member(group_id, member_id, current_user.id)
    return jsonify({"message": "Member removed successfully"}), 200


@group_api_bp.route("/groups/<int:group_id>/leave", methods=["DELETE"])
@login_required
def leave_group(group_id):
    group_service.leave_group(group_id, current_user.id)
    return jsonify({"message": "You left the group"}), 200


# =================================
#       Movie pool
# =================================


@group_api_bp.route("/groups/<int:group_id>/pool", methods=["GET"])
@login_required
def get_movie_pool(group_id):
    pool = pool_service.get_movie_pool(group_id, current_user.id)
    return jsonify(pool.to_dict()), 200


@group_api_bp.route("/groups/<int:group_id>/pool/<int:movie_id>", methods=["POST"])
@login_required
def add_movie_to_pool(group_id, movie_id):
    pool = pool_service.add_movie(group_id, movie_id, current_user.id)
    return jsonify(pool.to_dict()), 201


@group_api_bp.route(
    "/groups/<int:group_id>/pool/<int:movie_id>", methods=["DELETE"]
)
@login_required
def remove_movie_from_pool(group_id, movie_id):
    pool = pool_service.remove_movie(group_id, movie_id, current_user.id)
    return jsonify(pool.to_dict()), 200


# =================================
#       Phases and timers
# =================================


@group_api_bp.route("/groups/<int:group_id>/start-voting", methods=["POST"])
@login_required
def start_voting(group_id):
    group = group_service.start_voting(group_id, current_user.id)
    return jsonify(group.to_dict()), 200


def _duration_from_body():
    return get_json_body().get("duration")


@group_api_bp.route("/groups/<int:group_id>/pool-timer", methods=["POST"])
@login_required
def set_pool_timer(group_id):
    group = group_service.set_pool_phase_duration(
        group_id, current_user.id, _duration_from_body()
    )
    return jsonify(group.to_dict()), 200


@group_api_bp.route("/groups/<int:group_id>/voting-timer", methods=["POST"])
@login_required
def set_voting_timer(group_id):
    group = group_service.set_voting_phase_duration(
        group_id, current_user.id, _duration_from_body()
    )
    return jsonify(group.to_dict()), 200


@group_api_bp.route("/groups/<int:group_id>/timer", methods=["GET"])
@login_required
def get_remaining_time(group_id):
    remaining = group_service.get_remaining_time(group_id, current_user.id)
    return jsonify({"groupId": group_id, "remainingSeconds": remaining}), 200


@group_api_bp.route("/groups/<int:group_id>/voting-status", methods=["GET"])
@login_required
def get_voting_status(group_id):
    return jsonify(group_service.get_voting_status(group_id, current_user.id)), 200
