from flask import Blueprint, request, jsonify
from flask_login import current_user, login_required

from services import movie_service


movie_api_bp = Blueprint("movie", __name__)


def _list_arg(name):
    """Comma separated query parameter, also accepting repeated keys."""
    values = []
    for raw in request.args.getlist(name):
        values.extend(part.strip() for part in raw.split(",") if part.strip())
    return values or None


# =================================
#       Movie Endpoints
# =================================


@movie_api_bp.route("/movies", methods=["GET"])
@login_required
def search_movies():
    movies = movie_service.search_movies(
        title=request.args.get("title"),
        genres=_list_arg("genres"),
        year=request.args.get("year"),
        actors=_list_arg("actors"),
        directors=_list_arg("directors"),
    )
    return jsonify(movies), 200


@movie_api_bp.route("/movies/genres", methods=["GET"])
@login_required
def get_genres():
    return jsonify(movie_service.get_genres()), 200


@movie_api_bp.route("/movies/<int:movie_id>", methods=["GET"])
@login_required
def get_movie(movie_id):
    return jsonify(movie_service.get_movie(movie_id).to_dict()), 200


@movie_api_bp.route("/movies/suggestions/<int:user_id>", methods=["GET"])
@login_required
def get_suggestions(user_id):
    if user_id != current_user.id:
        return jsonify({"error": "You can only view your own suggestions"}), 403
    limit = request.args.get("limit", 10, type=int)
    return jsonify(movie_service.get_suggestions(user_id, limit=max(1, limit))), 200
