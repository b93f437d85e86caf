import logging

from flask import current_app

from models import db, utcnow
from models.group import GroupPhase
from models.movie_pool import MoviePool, MoviePoolEntry
from services import movie_service, transaction
from services.exceptions import ConflictError, ForbiddenError, NotFoundError
from services.group_service import find_group, require_member

logger = logging.getLogger(__name__)


def _contribution_cap():
    return current_app.config.get("POOL_CONTRIBUTION_CAP", 2)


def _find_pool(group_id, lock=False):
    query = MoviePool.query.filter_by(group_id=group_id)
    if lock:
        query = query.with_for_update().populate_existing()
    pool = query.first()
    if not pool:
        raise NotFoundError("Movie pool not found for this group")
    return pool


def get_movie_pool(group_id, user_id):
    group = find_group(group_id)
    require_member(group, user_id)
    return _find_pool(group.id)


def add_movie(group_id, movie_id, user_id):
    """
    Add a candidate to the group's pool during COLLECTING. Each member may
    contribute at most POOL_CONTRIBUTION_CAP movies.
    """
    group = find_group(group_id)
    if group.phase != GroupPhase.COLLECTING:
        raise ConflictError("Can only add movies in COLLECTING phase")
    require_member(group, user_id)

    # Resolve (and cache) the movie before the pool transaction starts
    movie = movie_service.get_movie(movie_id)

    with transaction("Movie is already in the pool"):
        # Re-check under the row lock so concurrent adds cannot overshoot
        group = find_group(group_id, lock=True)
        if group.phase != GroupPhase.COLLECTING:
            raise ConflictError("Can only add movies in COLLECTING phase")
        pool = _find_pool(group.id, lock=True)

        cap = _contribution_cap()
        if pool.contributions_by(user_id) >= cap:
            raise ConflictError(
                f"User has already added maximum number of movies ({cap}) "
                "- delete at least one before adding one more"
            )
        if pool.entry_for(movie.movie_id):
            raise ConflictError("Movie is already in the pool")

        pool.entries.append(
            MoviePoolEntry(
                movie_id=movie.movie_id, added_by_user_id=user_id, added_at=utcnow()
            )
        )
        pool.last_updated = utcnow()
        db.session.flush()

    logger.info(
        "User %s added movie %s to pool of group %s", user_id, movie.movie_id, group_id
    )
    return pool


def remove_movie(group_id, movie_id, user_id):
    with transaction():
        group = find_group(group_id, lock=True)
        if group.phase != GroupPhase.COLLECTING:
            raise ConflictError("Can only remove movies in COLLECTING phase")
        require_member(group, user_id)

        pool = _find_pool(group.id, lock=True)
        entry = pool.entry_for(int(movie_id))
        if entry is None:
            raise NotFoundError("Movie is not in the pool")
        if entry.added_by_user_id != user_id:
            raise ForbiddenError("You can only remove movies that you added")

        pool.entries.remove(entry)
        pool.last_updated = utcnow()

    logger.info(
        "User %s removed movie %s from pool of group %s", user_id, movie_id, group_id
    )
    return pool
