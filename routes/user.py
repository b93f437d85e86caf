from flask import Blueprint, request, jsonify
from flask_login import current_user, login_required

from routes import get_json_body
from services import user_movie_service, user_service


user_api_bp = Blueprint("user", __name__)


# =================================
#       Auth Endpoints
# =================================


@user_api_bp.route("/register", methods=["POST"])
def register():
    data = get_json_body()
    user = user_service.register_user(
        data.get("username"), data.get("email"), data.get("password")
    )
    return jsonify({**user.to_dict(), "token": user.token}), 201


@user_api_bp.route("/login", methods=["POST"])
def login():
    data = get_json_body()
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""
    if not username or not password:
        return jsonify({"error": "Username and password required."}), 400

    user = user_service.login_user(username, password)
    return jsonify({**user.to_dict(), "token": user.token}), 200


@user_api_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    user_service.logout_user(current_user)
    return jsonify({"message": "Logged out successfully"}), 200


@user_api_bp.route("/check/username", methods=["GET"])
def check_username():
    username = request.args.get("username", "").strip()
    if not username:
        return jsonify({"error": "username is required"}), 400
    return jsonify({"available": user_service.is_username_available(username)}), 200


@user_api_bp.route("/check/email", methods=["GET"])
def check_email():
    email = request.args.get("email", "").strip()
    if not email:
        return jsonify({"error": "email is required"}), 400
    return jsonify({"available": user_service.is_email_available(email)}), 200


# =================================
#       User Endpoints
# =================================


@user_api_bp.route("/users/all", methods=["GET"])
@login_required
def get_users():
    return jsonify([user.to_summary() for user in user_service.get_users()]), 200


@user_api_bp.route("/users/search", methods=["GET"])
@login_required
def search_user():
    user = user_service.search_user_by_username(request.args.get("username"))
    return jsonify(user.to_dict()), 200


@user_api_bp.route("/users/<int:user_id>/profile", methods=["GET"])
@login_required
def get_profile(user_id):
    return jsonify(user_service.get_user(user_id).to_dict()), 200


@user_api_bp.route("/users/<int:user_id>/profile", methods=["PUT"])
@login_required
def update_profile(user_id):
    user = user_service.update_user(user_id, current_user.id, get_json_body())
    return jsonify(user.to_dict()), 200


# =================================
#       Favorites
# =================================


@user_api_bp.route("/users/<int:user_id>/favorites", methods=["GET"])
@login_required
def get_favorites(user_id):
    return jsonify(user_movie_service.get_all_favorites(user_id)), 200


@user_api_bp.route(
    "/users/<int:user_id>/favorites/<any(genres, actors, directors):kind>",
    methods=["GET"],
)
@login_required
def get_favorite_list(user_id, kind):
    return jsonify({kind: user_movie_service.get_favorites(user_id, kind)}), 200


@user_api_bp.route(
    "/users/<int:user_id>/favorites/<any(genres, actors, directors):kind>",
    methods=["POST"],
)
@login_required
def set_favorite_list(user_id, kind):
    data = get_json_body()
    values = data.get(kind) if isinstance(data, dict) else data
    if not isinstance(values, list):
        return jsonify({"error": f"'{kind}' must be a list."}), 400
    saved = user_movie_service.set_favorites(user_id, current_user.id, kind, values)
    return jsonify({kind: saved}), 200


@user_api_bp.route("/users/<int:user_id>/favorites/movie", methods=["GET"])
@login_required
def get_favorite_movie(user_id):
    movie = user_service.get_user(user_id).favorite_movie
    return jsonify({"favoriteMovie": movie.to_dict() if movie else None}), 200


@user_api_bp.route("/users/<int:user_id>/favorites/movie", methods=["POST"])
@login_required
def set_favorite_movie(user_id):
    movie = user_movie_service.set_favorite_movie(
        user_id, current_user.id, get_json_body().get("movieId")
    )
    return jsonify({"favoriteMovie": movie.to_dict() if movie else None}), 200


# =================================
#       Watchlist / watched
# =================================


@user_api_bp.route(
    "/users/<int:user_id>/<any(watchlist, watched):list_name>", methods=["GET"]
)
@login_required
def get_movie_list(user_id, list_name):
    movies = user_movie_service.get_movie_list(user_id, list_name)
    return jsonify([movie.to_dict() for movie in movies]), 200


@user_api_bp.route(
    "/users/<int:user_id>/<any(watchlist, watched):list_name>/<int:movie_id>",
    methods=["POST"],
)
@login_required
def add_to_movie_list(user_id, list_name, movie_id):
    movies = user_movie_service.add_to_list(
        user_id, current_user.id, list_name, movie_id
    )
    return jsonify([movie.to_dict() for movie in movies]), 201


@user_api_bp.route(
    "/users/<int:user_id>/<any(watchlist, watched):list_name>/<int:movie_id>",
    methods=["DELETE"],
)
@login_required
def remove_from_movie_list(user_id, list_name, movie_id):
    movies = user_movie_service.remove_from_list(
        user_id, current_user.id, list_name, movie_id
    )
    return jsonify([movie.to_dict() for movie in movies]), 200
