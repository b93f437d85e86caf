from . import db, utcnow


class Friendship(db.Model):
    """One direction of an accepted friendship.

    Friendships are always stored as a pair of rows (a, b) and (b, a),
    written and removed in the same transaction.
    """

    __tablename__ = "friendships"

    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), primary_key=True
    )
    friend_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), primary_key=True
    )
    created_at = db.Column(db.DateTime, default=utcnow)

    user = db.relationship("User", foreign_keys=[user_id])
    friend = db.relationship("User", foreign_keys=[friend_id])

    # Unique constraint to prevent duplicate friendships
    __table_args__ = (
        db.UniqueConstraint("user_id", "friend_id", name="unique_friendship"),
    )

    def __repr__(self):
        return f"<Friendship user_id={self.user_id}, friend_id={self.friend_id}>"
