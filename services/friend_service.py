import logging

from sqlalchemy import and_, or_

from models import db, utcnow
from models.friend_request import FriendRequest
from models.friendship import Friendship
from models.user import User
from services import transaction
from services.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from services.user_service import get_user

logger = logging.getLogger(__name__)


def are_friends(user_id, friend_id):
    return (
        Friendship.query.filter_by(user_id=user_id, friend_id=friend_id).first()
        is not None
    )


def get_friends(user_id):
    get_user(user_id)
    return (
        User.query.join(Friendship, Friendship.friend_id == User.id)
        .filter(Friendship.user_id == user_id)
        .order_by(User.username)
        .all()
    )


def _pending_between(user_a, user_b):
    # Check in either direction
    return FriendRequest.query.filter(
        or_(
            and_(FriendRequest.sender_id == user_a, FriendRequest.receiver_id == user_b),
            and_(FriendRequest.sender_id == user_b, FriendRequest.receiver_id == user_a),
        ),
        FriendRequest.response_time.is_(None),
    ).first()


def send_friend_request(sender_id, receiver_id):
    sender = get_user(sender_id)
    try:
        receiver = get_user(receiver_id)
    except NotFoundError:
        raise NotFoundError("Receiver not found")

    if sender.id == receiver.id:
        raise BadRequestError("Cannot send request to yourself")

    if are_friends(sender.id, receiver.id):
        raise ConflictError("You are already friends")

    if _pending_between(sender.id, receiver.id):
        raise ConflictError(
            "Friend request already exists - wait for response on it"
        )

    request = FriendRequest(
        sender_id=sender.id,
        receiver_id=receiver.id,
        creation_time=utcnow(),
        accepted=False,
    )
    with transaction():
        db.session.add(request)

    logger.info("User %s sent friend request to %s", sender.id, receiver.id)
    return request


def _get_request_for_receiver(request_id, user_id, action):
    request = (
        FriendRequest.query.filter_by(id=request_id).with_for_update().first()
    )
    if not request:
        raise NotFoundError("Friend request not found")
    if request.receiver_id != user_id:
        raise ForbiddenError(f"Not authorized to {action} this request")
    if not request.is_pending:
        raise ConflictError("Friend request already responded to")
    return request


def _add_friendship(user_id, friend_id):
    if not are_friends(user_id, friend_id):
        db.session.add(Friendship(user_id=user_id, friend_id=friend_id))


def accept_friend_request(request_id, user_id):
    with transaction("Friend request already responded to"):
        request = _get_request_for_receiver(request_id, user_id, "accept")
        request.accepted = True
        request.response_time = utcnow()

        # add friends mutually
        _add_friendship(request.sender_id, request.receiver_id)
        _add_friendship(request.receiver_id, request.sender_id)

    logger.info(
        "Friend request %s accepted, %s and %s are now friends",
        request_id,
        request.sender_id,
        request.receiver_id,
    )
    return request


def reject_friend_request(request_id, user_id):
    with transaction():
        request = _get_request_for_receiver(request_id, user_id, "reject")
        request.accepted = False
        request.response_time = utcnow()

    logger.info("Friend request %s rejected", request_id)
    return request


def get_pending_received_requests(user_id):
    get_user(user_id)
    return (
        FriendRequest.query.filter_by(receiver_id=user_id)
        .filter(FriendRequest.response_time.is_(None))
        .order_by(FriendRequest.creation_time, FriendRequest.id)
        .all()
    )


def get_pending_sent_requests(user_id):
    get_user(user_id)
    return (
        FriendRequest.query.filter_by(sender_id=user_id)
        .filter(FriendRequest.response_time.is_(None))
        .order_by(FriendRequest.creation_time, FriendRequest.id)
        .all()
    )


def remove_friend(user_id, friend_id):
    get_user(user_id)
    try:
        get_user(friend_id)
    except NotFoundError:
        raise NotFoundError("Friend not found")

    if not are_friends(user_id, friend_id):
        raise BadRequestError("This user is not your friend")

    with transaction():
        Friendship.query.filter(
            or_(
                and_(Friendship.user_id == user_id, Friendship.friend_id == friend_id),
                and_(Friendship.user_id == friend_id, Friendship.friend_id == user_id),
            )
        ).delete(synchronize_session=False)

    logger.info("Users %s and %s are no longer friends", user_id, friend_id)
