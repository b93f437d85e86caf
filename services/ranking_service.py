import logging

from models import db, utcnow
from models.group import GroupPhase
from models.ranking import RankingResult, RankingSubmissionLog, UserMovieRanking
from services import transaction
from services.exceptions import (
    BadRequestError,
    ConflictError,
    InvalidRankingError,
    NotFoundError,
)
from services.group_service import find_group, require_creator, require_member
from services.user_service import get_user

logger = logging.getLogger(__name__)


# =================================
#         Standings
# =================================


def _standing_key(standing):
    """
    Ordering used for the winner and for the full result table:
    lowest average rank, then higher TMDb rating (unrated last), then
    earlier pool entry, then lower TMDb id.
    """
    entry = standing["entry"]
    rating = entry.movie.tmdb_rating
    rating_key = (0, -rating) if rating is not None else (1, 0)
    return (
        standing["average_rank"],
        rating_key,
        entry.added_at,
        entry.id,
        entry.movie_id,
    )


def compute_standings(entries, rankings):
    """
    Average the submitted ranks per pool entry.

    Returns (ranked, unranked): ranked standings sorted best first, and
    pool entries that received no ranks at all.
    """
    ranks_by_movie = {}
    for ranking in rankings:
        ranks_by_movie.setdefault(ranking.movie_id, []).append(ranking.rank)

    ranked, unranked = [], []
    for entry in entries:
        ranks = ranks_by_movie.get(entry.movie_id)
        if not ranks:
            unranked.append(entry)
            continue
        ranked.append(
            {
                "entry": entry,
                "average_rank": sum(ranks) / len(ranks),
                "votes": len(ranks),
            }
        )

    ranked.sort(key=_standing_key)
    return ranked, unranked


# =================================
#         Submission
# =================================


def _as_int(value):
    # JSON numbers only; 2.0 is fine, 1.9 and "1" are not
    if isinstance(value, bool):
        raise InvalidRankingError("movieId and rank must be integers.")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise InvalidRankingError("movieId and rank must be integers.")


def _parse_rankings(rankings):
    if not isinstance(rankings, list) or not rankings:
        raise InvalidRankingError("Rankings must be a non-empty list.")

    parsed = []
    for item in rankings:
        if not isinstance(item, dict):
            raise InvalidRankingError("Each ranking needs a movieId and a rank.")
        movie_id, rank = item.get("movieId"), item.get("rank")
        if movie_id is None or rank is None:
            raise InvalidRankingError(
                "Ranking submission contains null movieId or rank."
            )
        parsed.append((_as_int(movie_id), _as_int(rank)))
    return parsed


def validate_rankings(parsed, pool_movie_ids):
    """
    Every movie must be in the pool (once), and the ranks must be exactly
    1..N where N is the pool size.
    """
    available = set(pool_movie_ids)
    seen_movies = set()
    for movie_id, _ in parsed:
        if movie_id not in available:
            raise InvalidRankingError(
                f"Invalid ranking: Movie with ID {movie_id} is not available for ranking."
            )
        if movie_id in seen_movies:
            raise InvalidRankingError(
                f"Invalid ranking: Duplicate movie ID {movie_id} submitted."
            )
        seen_movies.add(movie_id)

    required = len(available)
    ranks = [rank for _, rank in parsed]
    if len(ranks) != required or sorted(ranks) != list(range(1, required + 1)):
        raise InvalidRankingError(
            f"Invalid ranking: ranks must be the numbers 1 to {required}, "
            "each used exactly once."
        )


def submit_rankings(user_id, group_id, rankings):
    """
    Replace the user's ranking of the group's pool. The old rows are
    deleted and the new ones inserted in one transaction.
    """
    user = get_user(user_id)
    parsed = _parse_rankings(rankings)

    with transaction():
        group = find_group(group_id, lock=True)
        require_member(group, user.id)
        if group.phase != GroupPhase.VOTING:
            raise ConflictError("Rankings can only be submitted in VOTING phase")

        pool = group.movie_pool
        if pool is None or not pool.entries:
            raise InvalidRankingError(
                f"No movies available for ranking in group {group_id}."
            )

        validate_rankings(parsed, pool.movie_ids)

        UserMovieRanking.query.filter_by(user_id=user.id, group_id=group.id).delete(
            synchronize_session=False
        )
        db.session.add_all(
            UserMovieRanking(
                user_id=user.id, group_id=group.id, movie_id=movie_id, rank=rank
            )
            for movie_id, rank in parsed
        )
        db.session.add(
            RankingSubmissionLog(
                user_id=user.id,
                group_id=group.id,
                submission_time=utcnow(),
                number_of_movies_ranked=len(parsed),
            )
        )

    logger.info(
        "User %s submitted %d rankings for group %s", user_id, len(parsed), group_id
    )


def get_user_rankings(user_id, group_id):
    return (
        UserMovieRanking.query.filter_by(user_id=user_id, group_id=group_id)
        .order_by(UserMovieRanking.rank)
        .all()
    )


# =================================
#         Results
# =================================


def calculate_result(group_id, user_id=None):
    """
    Pick the pool movie with the lowest average rank, append a
    RankingResult and close the group. user_id is None when the phase
    timer triggers the calculation.
    """
    with transaction():
        group = find_group(group_id, lock=True)
        if user_id is not None:
            require_creator(group, user_id, "calculate the result")

        pool = group.movie_pool
        if pool is None or not pool.entries:
            raise BadRequestError(f"The movie pool of group {group_id} is empty.")

        rankings = UserMovieRanking.query.filter_by(group_id=group.id).all()
        if not rankings:
            raise BadRequestError(
                f"Cannot calculate winner for group {group_id}: "
                "no rankings have been submitted yet."
            )

        if group.phase == GroupPhase.COLLECTING:
            raise ConflictError("Results can only be calculated after voting started")

        ranked, _ = compute_standings(pool.entries, rankings)
        winner = ranked[0]

        result = RankingResult(
            group_id=group.id,
            winning_movie_id=winner["entry"].movie_id,
            average_rank=winner["average_rank"],
            calculation_timestamp=utcnow(),
        )
        db.session.add(result)
        group.phase = GroupPhase.CLOSED
        group.phase_start_time = None

    logger.info(
        "Calculated winner for group %s: movie %s, average rank %.3f",
        group_id,
        result.winning_movie_id,
        result.average_rank,
    )
    return result


def get_latest_result(group_id, user_id):
    group = find_group(group_id)
    require_member(group, user_id)
    result = (
        RankingResult.query.filter_by(group_id=group.id)
        .order_by(
            RankingResult.calculation_timestamp.desc(), RankingResult.id.desc()
        )
        .first()
    )
    if not result:
        raise NotFoundError(f"No ranking result calculated yet for group {group_id}.")
    return result


def get_rankable_movies(group_id, user_id):
    group = find_group(group_id)
    require_member(group, user_id)
    if group.movie_pool is None:
        raise NotFoundError(f"Movie pool not found for group {group_id}")
    return group.movie_pool.movies


def get_complete_results(group_id, user_id):
    """Average rank and vote count for every movie in the pool."""
    group = find_group(group_id)
    require_member(group, user_id)
    entries = group.movie_pool.entries if group.movie_pool else []
    rankings = UserMovieRanking.query.filter_by(group_id=group.id).all()
    ranked, unranked = compute_standings(entries, rankings)

    table = [
        {
            "movie": standing["entry"].movie.to_dict(),
            "averageRank": standing["average_rank"],
            "votes": standing["votes"],
        }
        for standing in ranked
    ]
    table.extend(
        {"movie": entry.movie.to_dict(), "averageRank": None, "votes": 0}
        for entry in sorted(unranked, key=lambda e: e.movie.title or "")
    )
    return table
