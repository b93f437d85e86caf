from . import db, utcnow, isoformat


class GroupInvitation(db.Model):
    __tablename__ = "group_invitations"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(
        db.Integer, db.ForeignKey("user_groups.id"), nullable=False, index=True
    )
    sender_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    receiver_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True
    )
    creation_time = db.Column(db.DateTime, default=utcnow, nullable=False)
    response_time = db.Column(db.DateTime, nullable=True)
    accepted = db.Column(db.Boolean, default=False, nullable=False)

    group = db.relationship("Group")
    sender = db.relationship("User", foreign_keys=[sender_id])
    receiver = db.relationship("User", foreign_keys=[receiver_id])

    @property
    def is_pending(self):
        return self.response_time is None

    def to_dict(self):
        return {
            "invitationId": self.id,
            "group": {"groupId": self.group.id, "groupName": self.group.name},
            "sender": self.sender.to_summary(),
            "receiver": self.receiver.to_summary(),
            "creationTime": isoformat(self.creation_time),
            "responseTime": isoformat(self.response_time),
            "accepted": self.accepted,
        }

    def __repr__(self):
        return (
            f"<GroupInvitation id={self.id}, group_id={self.group_id}, "
            f"receiver_id={self.receiver_id}>"
        )
