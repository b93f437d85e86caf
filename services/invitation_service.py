import logging

from models import db, utcnow
from models.group import GroupMember
from models.group_invitation import GroupInvitation
from services import transaction
from services.exceptions import ConflictError, ForbiddenError, NotFoundError
from services.group_service import find_group
from services.user_service import get_user

logger = logging.getLogger(__name__)


def send_invitation(group_id, sender_id, receiver_id):
    group = find_group(group_id)
    try:
        sender = get_user(sender_id)
    except NotFoundError:
        raise NotFoundError("Sender not found")
    try:
        receiver = get_user(receiver_id)
    except NotFoundError:
        raise NotFoundError("Receiver not found")

    if not group.is_member(sender.id):
        raise ForbiddenError("Only group members can send invitations")

    if group.is_member(receiver.id):
        raise ConflictError("User is already a member of the group")

    pending = (
        GroupInvitation.query.filter_by(group_id=group.id, receiver_id=receiver.id)
        .filter(GroupInvitation.response_time.is_(None))
        .first()
    )
    if pending:
        raise ConflictError("Invitation already exists")

    invitation = GroupInvitation(
        group_id=group.id,
        sender_id=sender.id,
        receiver_id=receiver.id,
        creation_time=utcnow(),
        accepted=False,
    )
    with transaction():
        db.session.add(invitation)

    logger.info(
        "User %s invited %s to group %s", sender.id, receiver.id, group.id
    )
    return invitation


def _respond(invitation_id, user_id, accept):
    with transaction("User is already a member of the group"):
        invitation = (
            GroupInvitation.query.filter_by(id=invitation_id)
            .with_for_update()
            .first()
        )
        if not invitation:
            raise NotFoundError("Invitation not found")
        if invitation.receiver_id != user_id:
            raise ForbiddenError("Not authorized to respond to this invitation")
        if not invitation.is_pending:
            raise ConflictError("Invitation already responded to")

        invitation.response_time = utcnow()
        invitation.accepted = accept
        if accept:
            group = find_group(invitation.group_id, lock=True)
            if not group.is_member(user_id):
                group.memberships.append(GroupMember(user_id=user_id))

    logger.info(
        "Invitation %s %s by user %s",
        invitation_id,
        "accepted" if accept else "rejected",
        user_id,
    )
    return invitation


def accept_invitation(invitation_id, user_id):
    return _respond(invitation_id, user_id, True)


def reject_invitation(invitation_id, user_id):
    return _respond(invitation_id, user_id, False)


def delete_invitation(invitation_id, user_id):
    with transaction():
        invitation = db.session.get(GroupInvitation, invitation_id)
        if not invitation:
            raise NotFoundError("Invitation not found")
        if invitation.sender_id != user_id:
            raise ForbiddenError("Not authorized to delete this invitation")
        if not invitation.is_pending:
            raise ConflictError("Invitation already responded to")
        db.session.delete(invitation)


def get_received_invitations(user_id, pending_only=False):
    get_user(user_id)
    query = GroupInvitation.query.filter_by(receiver_id=user_id)
    if pending_only:
        query = query.filter(GroupInvitation.response_time.is_(None))
    return query.order_by(GroupInvitation.creation_time, GroupInvitation.id).all()


def get_sent_invitations(user_id, pending_only=False):
    get_user(user_id)
    query = GroupInvitation.query.filter_by(sender_id=user_id)
    if pending_only:
        query = query.filter(GroupInvitation.response_time.is_(None))
    return query.order_by(GroupInvitation.creation_time, GroupInvitation.id).all()
