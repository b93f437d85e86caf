import enum

from . import db, utcnow, isoformat


class GroupPhase(enum.Enum):
    COLLECTING = "COLLECTING"
    VOTING = "VOTING"
    CLOSED = "CLOSED"


class GroupMember(db.Model):
    __tablename__ = "group_members"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(
        db.Integer, db.ForeignKey("user_groups.id"), nullable=False, index=True
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True
    )
    joined_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    user = db.relationship("User", lazy="joined")

    __table_args__ = (
        db.UniqueConstraint("group_id", "user_id", name="unique_group_member"),
    )


class Group(db.Model):
    __tablename__ = "user_groups"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), unique=True, nullable=False)
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    phase = db.Column(
        db.Enum(GroupPhase, name="group_phase"),
        default=GroupPhase.COLLECTING,
        nullable=False,
    )
    created_at = db.Column(db.DateTime, default=utcnow)

    # Phase timers, durations in seconds
    pool_phase_duration = db.Column(db.Integer, nullable=True)
    voting_phase_duration = db.Column(db.Integer, nullable=True)
    phase_start_time = db.Column(db.DateTime, nullable=True)

    creator = db.relationship("User", foreign_keys=[creator_id])
    memberships = db.relationship(
        "GroupMember",
        order_by="GroupMember.id",
        cascade="all, delete-orphan",
        lazy="select",
    )
    movie_pool = db.relationship(
        "MoviePool",
        uselist=False,
        back_populates="group",
        cascade="all, delete-orphan",
    )

    @property
    def members(self):
        return [membership.user for membership in self.memberships]

    @property
    def member_ids(self):
        return [membership.user_id for membership in self.memberships]

    def is_member(self, user_id):
        return user_id in self.member_ids

    def to_dict(self):
        return {
            "groupId": self.id,
            "groupName": self.name,
            "creatorId": self.creator_id,
            "phase": self.phase.value,
            "memberIds": self.member_ids,
            "moviePoolId": self.movie_pool.id if self.movie_pool else None,
            "poolPhaseDuration": self.pool_phase_duration,
            "votingPhaseDuration": self.voting_phase_duration,
            "phaseStartTime": isoformat(self.phase_start_time),
        }

    def __repr__(self):
        return f"<Group id={self.id}, name={self.name}, phase={self.phase}>"
