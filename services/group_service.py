import logging

from models import db, utcnow
from models.group import Group, GroupMember, GroupPhase
from models.group_invitation import GroupInvitation
from models.movie_pool import MoviePool
from models.ranking import RankingResult, RankingSubmissionLog, UserMovieRanking
from services import transaction
from services.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from services.user_service import get_user

logger = logging.getLogger(__name__)


# =================================
#         Helper Functions
# =================================


def find_group(group_id, lock=False):
    """
    Load a group or raise NotFoundError. With lock=True the row is
    selected FOR UPDATE so concurrent writers on the same group queue up.
    """
    query = Group.query.filter_by(id=group_id)
    if lock:
        query = query.with_for_update().populate_existing()
    group = query.first()
    if not group:
        raise NotFoundError(f"Group with ID {group_id} not found.")
    return group


def require_member(group, user_id):
    if not group.is_member(user_id):
        raise ForbiddenError("User is not a member of this group")


def require_creator(group, user_id, action):
    if group.creator_id != user_id:
        raise ForbiddenError(f"Only the group creator can {action}")


def _validate_group_name(name, current=None):
    name = (name or "").strip()
    if not name:
        raise BadRequestError("Group name cannot be empty")
    if name != current and Group.query.filter_by(name=name).first():
        raise ConflictError("This group name is already taken")
    return name


# =================================
#         Group lifecycle
# =================================


def create_group(name, creator_id):
    creator = get_user(creator_id)
    name = _validate_group_name(name)

    group = Group(
        name=name,
        creator_id=creator.id,
        phase=GroupPhase.COLLECTING,
        phase_start_time=utcnow(),
    )
    group.memberships.append(GroupMember(user_id=creator.id))
    group.movie_pool = MoviePool(last_updated=utcnow())

    with transaction("This group name is already taken"):
        db.session.add(group)

    logger.info("User %s created group %s (id=%s)", creator.id, group.name, group.id)
    return group


def get_group(group_id, user_id):
    group = find_group(group_id)
    require_member(group, user_id)
    return group


def get_groups_for_user(user_id):
    get_user(user_id)
    return (
        Group.query.join(GroupMember, GroupMember.group_id == Group.id)
        .filter(GroupMember.user_id == user_id)
        .order_by(Group.id)
        .all()
    )


def get_members(group_id, user_id):
    return get_group(group_id, user_id).members


def update_group_name(group_id, user_id, new_name):
    group = find_group(group_id)
    require_creator(group, user_id, "update the group")
    new_name = _validate_group_name(new_name, current=group.name)
    with transaction("This group name is already taken"):
        group.name = new_name
    return group


def delete_group(group_id, user_id):
    with transaction():
        group = find_group(group_id, lock=True)
        require_creator(group, user_id, "delete the group")

        UserMovieRanking.query.filter_by(group_id=group.id).delete(
            synchronize_session=False
        )
        RankingResult.query.filter_by(group_id=group.id).delete(
            synchronize_session=False
        )
        RankingSubmissionLog.query.filter_by(group_id=group.id).delete(
            synchronize_session=False
        )
        GroupInvitation.query.filter_by(group_id=group.id).delete(
            synchronize_session=False
        )
        # Memberships, pool and pool entries go with the group (cascade)
        db.session.delete(group)

    logger.info("Group %s deleted by user %s", group_id, user_id)


def _drop_member(group, user_id):
    membership = GroupMember.query.filter_by(
        group_id=group.id, user_id=user_id
    ).first()
    group.memberships.remove(membership)
    # Pending invitations for this user in this group go away as well
    GroupInvitation.query.filter_by(
        group_id=group.id, receiver_id=user_id
    ).filter(GroupInvitation.response_time.is_(None)).delete(
        synchronize_session=False
    )


def leave_group(group_id, user_id):
    get_user(user_id)
    with transaction():
        group = find_group(group_id, lock=True)
        require_member(group, user_id)
        if group.creator_id == user_id:
            raise ConflictError(
                "The group creator cannot leave the group, delete it instead"
            )
        _drop_member(group, user_id)
    logger.info("User %s left group %s", user_id, group_id)


def remove_member(group_id, member_id, admin_user_id):
    get_user(member_id)
    with transaction():
        group = find_group(group_id, lock=True)
        require_creator(group, admin_user_id, "remove members")
        if member_id == admin_user_id:
            raise BadRequestError("The group creator cannot remove themselves")
        if not group.is_member(member_id):
            raise NotFoundError("User is not a member of this group")
        _drop_member(group, member_id)
    logger.info("User %s removed from group %s", member_id, group_id)


# =================================
#         Phases and timers
# =================================


def start_voting(group_id, user_id):
    """COLLECTING -> VOTING, triggered by the creator."""
    with transaction():
        group = find_group(group_id, lock=True)
        require_creator(group, user_id, "start the voting phase")
        if group.phase != GroupPhase.COLLECTING:
            raise ConflictError(
                "Voting phase can only be started from COLLECTING phase"
            )
        group.phase = GroupPhase.VOTING
        group.phase_start_time = utcnow()
    logger.info("Group %s entered VOTING phase", group_id)
    return group


def _set_duration(group_id, user_id, duration, attribute, phase):
    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        raise BadRequestError("Duration must be a positive number of seconds")
    with transaction():
        group = find_group(group_id, lock=True)
        require_creator(group, user_id, "set timer duration")
        if group.phase == GroupPhase.CLOSED:
            raise ConflictError("Timers cannot be changed once the group is closed")
        setattr(group, attribute, duration)
        # Setting the timer for the running phase (re)starts its clock
        if group.phase == phase:
            group.phase_start_time = utcnow()
    return group


def set_pool_phase_duration(group_id, user_id, duration):
    return _set_duration(
        group_id, user_id, duration, "pool_phase_duration", GroupPhase.COLLECTING
    )


def set_voting_phase_duration(group_id, user_id, duration):
    return _set_duration(
        group_id, user_id, duration, "voting_phase_duration", GroupPhase.VOTING
    )


def phase_duration(group):
    if group.phase == GroupPhase.COLLECTING:
        return group.pool_phase_duration
    if group.phase == GroupPhase.VOTING:
        return group.voting_phase_duration
    return None


def get_remaining_time(group_id, user_id):
    group = get_group(group_id, user_id)
    duration = phase_duration(group)
    if group.phase_start_time is None or duration is None:
        raise BadRequestError("No active timer for this group")
    elapsed = int((utcnow() - group.phase_start_time).total_seconds())
    return max(0, duration - elapsed)


def get_voting_status(group_id, user_id):
    """Which members already have a ranking submission for this group."""
    group = find_group(group_id)
    require_creator(group, user_id, "view voting status")
    voted = {
        row.user_id
        for row in db.session.query(UserMovieRanking.user_id)
        .filter_by(group_id=group.id)
        .distinct()
    }
    return [
        {
            "userId": member.id,
            "username": member.username,
            "hasVoted": member.id in voted,
        }
        for member in group.members
    ]
