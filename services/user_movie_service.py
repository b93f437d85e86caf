"""Per-user movie lists (watchlist, watched) and favourites."""

import logging

from services import movie_service, transaction
from services.exceptions import ConflictError, ForbiddenError, NotFoundError
from services.user_service import get_user

logger = logging.getLogger(__name__)

LISTS = {
    "watchlist": "watchlist",
    "watched": "watched_movies",
}

FAVORITE_FIELDS = {
    "genres": "favorite_genres",
    "actors": "favorite_actors",
    "directors": "favorite_directors",
}


def _check_owner(user_id, caller_id):
    if user_id != caller_id:
        raise ForbiddenError("You can only modify your own movie lists")


def get_movie_list(user_id, list_name):
    user = get_user(user_id)
    return list(getattr(user, LISTS[list_name]))


def add_to_list(user_id, caller_id, list_name, movie_id):
    _check_owner(user_id, caller_id)
    user = get_user(user_id)
    movie = movie_service.get_movie(movie_id)

    movies = getattr(user, LISTS[list_name])
    if movie in movies:
        raise ConflictError(f"Movie {movie.movie_id} is already in the {list_name}")

    with transaction(f"Movie {movie.movie_id} is already in the {list_name}"):
        movies.append(movie)
    logger.info("User %s added movie %s to %s", user_id, movie.movie_id, list_name)
    return list(movies)


def remove_from_list(user_id, caller_id, list_name, movie_id):
    _check_owner(user_id, caller_id)
    user = get_user(user_id)
    movies = getattr(user, LISTS[list_name])
    movie = next((m for m in movies if m.movie_id == int(movie_id)), None)
    if movie is None:
        raise NotFoundError(f"Movie {movie_id} is not in the {list_name}")

    with transaction():
        movies.remove(movie)
    return list(movies)


def _clean(values):
    """Strip blanks and duplicates, keeping the first occurrence."""
    cleaned = []
    for value in values or []:
        if not isinstance(value, str):
            value = str(value)
        value = value.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


def get_favorites(user_id, kind):
    user = get_user(user_id)
    return list(getattr(user, FAVORITE_FIELDS[kind]) or [])


def set_favorites(user_id, caller_id, kind, values):
    if user_id != caller_id:
        raise ForbiddenError("You can only modify your own favorites")
    user = get_user(user_id)
    with transaction():
        setattr(user, FAVORITE_FIELDS[kind], _clean(values))
    return list(getattr(user, FAVORITE_FIELDS[kind]))


def set_favorite_movie(user_id, caller_id, movie_id):
    if user_id != caller_id:
        raise ForbiddenError("You can only modify your own favorites")
    user = get_user(user_id)
    movie = movie_service.get_movie(movie_id) if movie_id else None
    with transaction():
        user.favorite_movie = movie
    return movie


def get_all_favorites(user_id):
    user = get_user(user_id)
    return {
        "favoriteGenres": list(user.favorite_genres or []),
        "favoriteActors": list(user.favorite_actors or []),
        "favoriteDirectors": list(user.favorite_directors or []),
        "favoriteMovie": user.favorite_movie.to_dict() if user.favorite_movie else None,
    }
