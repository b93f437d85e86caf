from . import db, utcnow, isoformat


class FriendRequest(db.Model):
    __tablename__ = "friend_requests"

    id = db.Column(db.Integer, primary_key=True)
    sender_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True
    )
    receiver_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True
    )
    creation_time = db.Column(db.DateTime, default=utcnow, nullable=False)
    # Null until the receiver answers; a request is pending iff this is null
    response_time = db.Column(db.DateTime, nullable=True)
    accepted = db.Column(db.Boolean, default=False, nullable=False)

    sender = db.relationship("User", foreign_keys=[sender_id])
    receiver = db.relationship("User", foreign_keys=[receiver_id])

    @property
    def is_pending(self):
        return self.response_time is None

    def to_dict(self):
        return {
            "requestId": self.id,
            "sender": self.sender.to_summary(),
            "receiver": self.receiver.to_summary(),
            "creationTime": isoformat(self.creation_time),
            "responseTime": isoformat(self.response_time),
            "accepted": self.accepted,
        }

    def __repr__(self):
        return (
            f"<FriendRequest id={self.id}, sender_id={self.sender_id}, "
            f"receiver_id={self.receiver_id}, accepted={self.accepted}>"
        )
