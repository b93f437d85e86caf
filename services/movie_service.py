import logging

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.movie import Movie
from models.user import User
from services.exceptions import (
    BadRequestError,
    NotFoundError,
    ServiceUnavailableError,
)
from services.tmdb import GENRE_ID_TO_NAME, TMDbUnavailableError

logger = logging.getLogger(__name__)

MAX_SUGGESTION_API_CALLS = 200


def _tmdb():
    return current_app.tmdb


def _payload(movie_data):
    """Mapped TMDb data in the same shape as Movie.to_dict(), without saving it."""
    return Movie(**movie_data).to_dict()


def _upsert(movie_data):
    """
    Insert a movie fetched from TMDb, or return the row that a concurrent
    request inserted first.
    """
    movie = Movie(**movie_data)
    db.session.add(movie)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        movie = db.session.get(Movie, movie_data["movie_id"])
        if movie is None:
            raise
    return movie


def get_movie(movie_id):
    """
    Resolve a movie by its TMDb id: local cache first, then TMDb.

    Raises NotFoundError when TMDb has no such movie and
    ServiceUnavailableError when TMDb cannot be reached. Nothing is
    written in either case.
    """
    try:
        movie_id = int(movie_id)
    except (TypeError, ValueError):
        raise BadRequestError(f"Invalid movie ID {movie_id!r}")

    movie = db.session.get(Movie, movie_id)
    if movie:
        return movie

    try:
        movie_data = _tmdb().get_movie_details(movie_id)
    except TMDbUnavailableError as e:
        logger.error("Could not fetch movie %s from TMDb: %s", movie_id, e)
        raise ServiceUnavailableError(
            "The movie database is currently unavailable. Please try again later."
        )

    if not movie_data:
        raise NotFoundError(f"Movie with ID {movie_id} was not found")

    movie = _upsert(movie_data)
    logger.info("Cached movie %s (%s) from TMDb", movie.movie_id, movie.title)
    return movie


def _search_local(title=None, genres=None, year=None, actors=None, directors=None):
    query = Movie.query
    if title:
        query = query.filter(Movie.title.ilike(f"%{title.strip()}%"))
    if year:
        query = query.filter(Movie.year == year)
    movies = query.order_by(Movie.title).all()

    def contains_all(values, wanted):
        lowered = {v.lower() for v in values or []}
        return all(w.lower() in lowered for w in wanted or [])

    return [
        movie
        for movie in movies
        if contains_all(movie.genres, genres)
        and contains_all(movie.actors, actors)
        and contains_all(movie.directors, directors)
    ]


def search_movies(title=None, genres=None, year=None, actors=None, directors=None):
    """
    Search TMDb by title/genres/year/actors/directors. Falls back to the
    local cache when TMDb is not configured or returns nothing.
    """
    if not any([title, genres, year, actors, directors]):
        raise BadRequestError("At least one search parameter is required")

    if year is not None:
        try:
            year = int(year)
        except (TypeError, ValueError):
            raise BadRequestError(f"Invalid year {year!r}")

    results = _tmdb().search_movies(
        title=title, genres=genres, year=year, actors=actors, directors=directors
    )
    if results:
        movies, seen = [], set()
        for data in results:
            if year and data.get("year") != year:
                continue
            if data["movie_id"] in seen:
                continue
            seen.add(data["movie_id"])
            movies.append(_payload(data))
        return movies

    return [
        movie.to_dict()
        for movie in _search_local(title, genres, year, actors, directors)
    ]


def get_genres():
    genres = _tmdb().get_genres()
    if genres:
        return genres
    return [
        {"id": genre_id, "name": name}
        for genre_id, name in sorted(GENRE_ID_TO_NAME.items(), key=lambda g: g[1])
    ]


def _search_permutations(genres, actors, directors):
    """Search parameter sets ordered from most to least specific."""
    queries = []
    if genres and actors and directors:
        queries.append({"genres": genres, "actors": actors, "directors": directors})
    if genres and actors:
        queries.append({"genres": genres, "actors": actors})
    if genres and directors:
        queries.append({"genres": genres, "directors": directors})
    if actors and directors:
        queries.append({"actors": actors, "directors": directors})
    if genres:
        queries.append({"genres": genres})
    if actors:
        queries.append({"actors": actors})
    if directors:
        queries.append({"directors": directors})
    queries.extend({"genres": [genre]} for genre in genres)
    queries.extend({"actors": [actor]} for actor in actors)
    queries.extend({"directors": [director]} for director in directors)
    return queries


def get_suggestions(user_id, limit=10):
    """
    Movie suggestions built from a user's favourite genres, actors and
    directors, skipping anything already watched or on the watchlist.
    """
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError(f"User with ID {user_id} not found")

    excluded = {m.movie_id for m in user.watched_movies}
    excluded.update(m.movie_id for m in user.watchlist)

    tmdb = _tmdb()
    suggestions, seen = [], set()
    api_calls = 0

    def collect(results):
        for data in results:
            if len(suggestions) >= limit:
                return
            movie_id = data["movie_id"]
            if movie_id in excluded or movie_id in seen:
                continue
            seen.add(movie_id)
            suggestions.append(_payload(data))

    queries = _search_permutations(
        list(user.favorite_genres or []),
        list(user.favorite_actors or []),
        list(user.favorite_directors or []),
    )
    for params in queries:
        if len(suggestions) >= limit or api_calls >= MAX_SUGGESTION_API_CALLS:
            break
        collect(tmdb.search_movies(**params))
        api_calls += 1

    # Top up with plain popularity results
    if len(suggestions) < limit and api_calls < MAX_SUGGESTION_API_CALLS:
        collect(tmdb.search_movies())
        api_calls += 1

    logger.info(
        "Generated %d suggestions for user %s using %d TMDb calls",
        len(suggestions),
        user_id,
        api_calls,
    )
    return suggestions
