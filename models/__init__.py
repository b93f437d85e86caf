from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow():
    """Naive UTC timestamp, matching what the DateTime columns hand back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value):
    return value.isoformat() if value else None


# Register every table on db.metadata before create_all() runs
from models.user import User, UserStatus  # noqa: E402,F401
from models.friendship import Friendship  # noqa: E402,F401
from models.friend_request import FriendRequest  # noqa: E402,F401
from models.movie import Movie  # noqa: E402,F401
from models.group import Group, GroupMember, GroupPhase  # noqa: E402,F401
from models.group_invitation import GroupInvitation  # noqa: E402,F401
from models.movie_pool import MoviePool, MoviePoolEntry  # noqa: E402,F401
from models.ranking import (  # noqa: E402,F401
    RankingResult,
    RankingSubmissionLog,
    UserMovieRanking,
)
