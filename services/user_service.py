import logging
import uuid

from models import db
from models.user import User, UserStatus
from services import movie_service, transaction
from services.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)


def get_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError(f"User with ID {user_id} not found.")
    return user


def get_users():
    return User.query.order_by(User.id).all()


def get_user_by_token(token):
    """
    Resolve a session token to its user, or None when the token is unknown.
    """
    if not token:
        return None
    return User.query.filter_by(token=token).first()


def is_username_available(username):
    return User.query.filter_by(username=username).first() is None


def is_email_available(email):
    return User.query.filter_by(email=email).first() is None


def _check_if_user_exists(username, email):
    base_error = (
        "The {} provided {} not unique. Therefore, the user could not be created!"
    )
    username_taken = not is_username_available(username)
    email_taken = not is_email_available(email)
    if username_taken and email_taken:
        raise BadRequestError(base_error.format("username and email", "are"))
    if username_taken:
        raise BadRequestError(base_error.format("username", "is"))
    if email_taken:
        raise BadRequestError(base_error.format("email", "is"))


def register_user(username, email, password):
    username = (username or "").strip()
    email = (email or "").strip()
    password = password or ""
    # The password is kept exactly as given; whitespace only counts as empty
    blank_password = not isinstance(password, str) or not password.strip()
    if not username or not email or blank_password:
        raise BadRequestError("Username, email and password are required.")

    _check_if_user_exists(username, email)

    user = User(username=username, email=email)
    user.password = password
    user.token = str(uuid.uuid4())
    user.status = UserStatus.ONLINE
    with transaction("Username or email already taken."):
        db.session.add(user)

    logger.info("Created user %s (id=%s)", user.username, user.id)
    return user


def login_user(username, password):
    user = User.query.filter_by(username=username).first()
    if not user:
        raise NotFoundError("User not found")
    if not user.verify_password(password or ""):
        raise UnauthorizedError("Invalid password")

    with transaction():
        user.status = UserStatus.ONLINE
        user.token = str(uuid.uuid4())
    return user


def logout_user(user):
    with transaction():
        user.status = UserStatus.OFFLINE
        user.token = None
    logger.info("User %s logged out", user.id)


def search_user_by_username(username):
    if not username or not username.strip():
        raise NotFoundError("User not found")
    user = User.query.filter_by(username=username.strip()).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def update_user(user_id, caller_id, data):
    """
    Apply a partial profile update. Only the user themself may edit
    their profile; username and email must stay unique.
    """
    if user_id != caller_id:
        raise ForbiddenError("You can only edit your own profile")
    user = get_user(user_id)

    username = data.get("username")
    if username is not None:
        username = username.strip()
        if not username:
            raise BadRequestError("Username cannot be empty")
        if username != user.username and not is_username_available(username):
            raise ConflictError("Username already taken")

    email = data.get("email")
    if email is not None:
        email = email.strip()
        if not email:
            raise BadRequestError("Email cannot be empty")
        if email != user.email and not is_email_available(email):
            raise ConflictError("Email already taken")

    favorite_movie = None
    clear_favorite = False
    if "favoriteMovieId" in data:
        movie_id = data.get("favoriteMovieId")
        if not movie_id:
            clear_favorite = True
        else:
            favorite_movie = movie_service.get_movie(movie_id)

    with transaction("Username or email already taken."):
        if username is not None:
            user.username = username
        if email is not None:
            user.email = email
        if data.get("password"):
            user.password = data["password"]
        if "bio" in data:
            user.bio = data.get("bio")
        if favorite_movie is not None:
            user.favorite_movie = favorite_movie
        elif clear_favorite:
            user.favorite_movie = None

    return user
