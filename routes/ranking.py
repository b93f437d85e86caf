from flask import Blueprint, request, jsonify
from flask_login import current_user, login_required

from routes import get_json_body
from services import ranking_service


ranking_api_bp = Blueprint("ranking", __name__)


# =================================
#         Helper Functions
# =================================


def _group_id_arg():
    return request.args.get("groupId", type=int)


def _submit(user_id, group_id):
    if user_id != current_user.id:
        return jsonify({"error": "You can only submit your own rankings"}), 403

    data = get_json_body(allow_list=True)
    # Accept either a bare list or {"rankings": [...]}
    rankings = data.get("rankings") if isinstance(data, dict) else data
    ranking_service.submit_rankings(user_id, group_id, rankings)

    saved = ranking_service.get_user_rankings(user_id, group_id)
    return jsonify(
        {
            "message": "Rankings submitted successfully",
            "groupId": group_id,
            "rankings": [ranking.to_dict() for ranking in saved],
        }
    ), 200


# =================================
#       Ranking Endpoints
# =================================


@ranking_api_bp.route(
    "/groups/<int:group_id>/users/<int:user_id>/rankings", methods=["POST"]
)
@login_required
def submit_rankings(group_id, user_id):
    return _submit(user_id, group_id)


@ranking_api_bp.route("/api/users/<int:user_id>/rankings", methods=["POST"])
@login_required
def submit_rankings_by_query(user_id):
    group_id = _group_id_arg()
    if group_id is None:
        return jsonify({"error": "groupId query parameter is required"}), 400
    return _submit(user_id, group_id)


@ranking_api_bp.route("/groups/<int:group_id>/movies/rankable", methods=["GET"])
@login_required
def get_rankable_movies(group_id):
    movies = ranking_service.get_rankable_movies(group_id, current_user.id)
    return jsonify([movie.to_dict() for movie in movies]), 200


@ranking_api_bp.route(
    "/groups/<int:group_id>/rankings/calculate", methods=["POST"]
)
@login_required
def calculate_result(group_id):
    result = ranking_service.calculate_result(group_id, user_id=current_user.id)
    return jsonify(result.to_dict()), 200


@ranking_api_bp.route("/groups/<int:group_id>/rankings/results", methods=["GET"])
@login_required
def get_complete_results(group_id):
    return jsonify(
        ranking_service.get_complete_results(group_id, current_user.id)
    ), 200


@ranking_api_bp.route(
    "/groups/<int:group_id>/rankings/results/latest", methods=["GET"]
)
@login_required
def get_latest_result(group_id):
    result = ranking_service.get_latest_result(group_id, current_user.id)
    return jsonify(result.to_dict()), 200


@ranking_api_bp.route("/api/rankings/results/latest", methods=["GET"])
@login_required
def get_latest_result_by_query():
    group_id = _group_id_arg()
    if group_id is None:
        return jsonify({"error": "groupId query parameter is required"}), 400
    result = ranking_service.get_latest_result(group_id, current_user.id)
    return jsonify(result.to_dict()), 200
