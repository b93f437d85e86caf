import logging

from models import utcnow
from models.group import Group, GroupPhase
from services import ranking_service, transaction
from services.exceptions import NotFoundError, ServiceError
from services.group_service import find_group, phase_duration

logger = logging.getLogger(__name__)


def _expired(group, now):
    duration = phase_duration(group)
    if duration is None or group.phase_start_time is None:
        return False
    return (now - group.phase_start_time).total_seconds() >= duration


def _advance(group_id, phase):
    """Returns True when the group changed phase."""
    if phase == GroupPhase.COLLECTING:
        with transaction():
            locked = find_group(group_id, lock=True)
            if locked.phase != GroupPhase.COLLECTING:
                return False
            locked.phase = GroupPhase.VOTING
            locked.phase_start_time = utcnow()
        logger.info("Pool timer expired, group %s entered VOTING", group_id)
        return True

    try:
        ranking_service.calculate_result(group_id)
        return True
    except NotFoundError:
        raise
    except ServiceError as e:
        logger.warning(
            "Voting timer expired for group %s but no result: %s",
            group_id,
            e.message,
        )
        # Stop the clock so the group is not retried every tick
        with transaction():
            find_group(group_id, lock=True).phase_start_time = None
        return False


def advance_expired_phases(now=None):
    """
    Move every group whose phase timer ran out to the next phase.
    COLLECTING -> VOTING directly, VOTING -> CLOSED through
    calculate_result. Returns the ids of groups that changed phase.
    """
    now = now or utcnow()
    advanced = []
    candidates = Group.query.filter(
        Group.phase.in_([GroupPhase.COLLECTING, GroupPhase.VOTING]),
        Group.phase_start_time.isnot(None),
    ).all()
    expired = [(group.id, group.phase) for group in candidates if _expired(group, now)]

    for group_id, phase in expired:
        try:
            if _advance(group_id, phase):
                advanced.append(group_id)
        except NotFoundError:
            # Deleted since the candidate query
            logger.info("Group %s disappeared before its timer was handled", group_id)

    return advanced
