from flask import Blueprint, jsonify, request
from flask_login import LoginManager

from services import user_service
from services.exceptions import BadRequestError


other_api_bp = Blueprint("other", __name__)

login_manager = LoginManager()


@other_api_bp.route("/", methods=["GET"])
def health_check():
    return jsonify({"status": "Movie Night Service is running!"}), 200


# =================================
#         Helper Functions
# =================================


def extract_token(authorization_header):
    """
    Returns the token of a 'Bearer <token>' header, or None.
    """
    if authorization_header and authorization_header.startswith("Bearer "):
        return authorization_header[len("Bearer "):].strip() or None
    return None


@login_manager.request_loader
def load_user_from_request(req):
    token = extract_token(req.headers.get("Authorization"))
    return user_service.get_user_by_token(token)


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"error": "Invalid or missing token", "status": 401}), 401


def get_json_body(allow_list=False):
    """
    The request's JSON body, or {} when there is none.

    Anything other than an object (or a list, with allow_list) is a 400.
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if isinstance(data, dict) or (allow_list and isinstance(data, list)):
        return data
    raise BadRequestError("Request body must be a JSON object.")
