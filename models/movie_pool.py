from . import db, utcnow, isoformat


class MoviePool(db.Model):
    __tablename__ = "movie_pools"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(
        db.Integer, db.ForeignKey("user_groups.id"), unique=True, nullable=False
    )
    last_updated = db.Column(db.DateTime, default=utcnow)

    group = db.relationship("Group", back_populates="movie_pool")
    entries = db.relationship(
        "MoviePoolEntry",
        order_by="MoviePoolEntry.id",
        cascade="all, delete-orphan",
        lazy="select",
    )

    @property
    def movies(self):
        return [entry.movie for entry in self.entries]

    @property
    def movie_ids(self):
        return [entry.movie_id for entry in self.entries]

    def contributions_by(self, user_id):
        return sum(1 for entry in self.entries if entry.added_by_user_id == user_id)

    def entry_for(self, movie_id):
        for entry in self.entries:
            if entry.movie_id == movie_id:
                return entry
        return None

    def to_dict(self):
        return {
            "poolId": self.id,
            "groupId": self.group_id,
            "lastUpdated": isoformat(self.last_updated),
            "movies": [entry.movie.to_dict() for entry in self.entries],
            "addedBy": {
                str(entry.movie_id): entry.added_by_user_id for entry in self.entries
            },
        }


class MoviePoolEntry(db.Model):
    """A candidate movie in a pool and the member who contributed it."""

    __tablename__ = "movie_pool_entries"

    id = db.Column(db.Integer, primary_key=True)
    pool_id = db.Column(
        db.Integer, db.ForeignKey("movie_pools.id"), nullable=False, index=True
    )
    movie_id = db.Column(
        db.BigInteger, db.ForeignKey("movies.movie_id"), nullable=False
    )
    added_by_user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False
    )
    added_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    movie = db.relationship("Movie", lazy="joined")

    # A movie can only be in a pool once, even under concurrent adds
    __table_args__ = (
        db.UniqueConstraint("pool_id", "movie_id", name="unique_pool_movie"),
    )

    def __repr__(self):
        return (
            f"<MoviePoolEntry pool_id={self.pool_id}, movie_id={self.movie_id}, "
            f"added_by={self.added_by_user_id}>"
        )
