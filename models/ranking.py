from . import db, utcnow, isoformat


class UserMovieRanking(db.Model):
    __tablename__ = "user_movie_rankings"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    movie_id = db.Column(
        db.BigInteger, db.ForeignKey("movies.movie_id"), nullable=False
    )
    group_id = db.Column(
        db.Integer, db.ForeignKey("user_groups.id"), nullable=False, index=True
    )
    # 1 is the favourite; upper bound (pool size) is checked by the service
    rank = db.Column(db.Integer, nullable=False)

    movie = db.relationship("Movie")

    __table_args__ = (
        db.UniqueConstraint(
            "user_id", "group_id", "movie_id", name="unique_user_group_movie"
        ),
        db.UniqueConstraint(
            "user_id", "group_id", "rank", name="unique_user_group_rank"
        ),
        db.CheckConstraint("rank >= 1", name="rank_positive"),
    )

    def to_dict(self):
        return {"movieId": self.movie_id, "rank": self.rank}

    def __repr__(self):
        return (
            f"<UserMovieRanking user_id={self.user_id}, group_id={self.group_id}, "
            f"movie_id={self.movie_id}, rank={self.rank}>"
        )


class RankingResult(db.Model):
    __tablename__ = "ranking_results"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(
        db.Integer, db.ForeignKey("user_groups.id"), nullable=False, index=True
    )
    winning_movie_id = db.Column(
        db.BigInteger, db.ForeignKey("movies.movie_id"), nullable=False
    )
    average_rank = db.Column(db.Float, nullable=False)
    calculation_timestamp = db.Column(db.DateTime, default=utcnow, nullable=False)

    winning_movie = db.relationship("Movie")

    def to_dict(self):
        return {
            "resultId": self.id,
            "groupId": self.group_id,
            "winningMovie": self.winning_movie.to_dict(),
            "averageRank": self.average_rank,
            "calculationTimestamp": isoformat(self.calculation_timestamp),
        }


class RankingSubmissionLog(db.Model):
    __tablename__ = "ranking_submission_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    group_id = db.Column(
        db.Integer, db.ForeignKey("user_groups.id"), nullable=False, index=True
    )
    submission_time = db.Column(db.DateTime, default=utcnow, nullable=False)
    number_of_movies_ranked = db.Column(db.Integer, nullable=False)

    def __repr__(self):
        return (
            f"<RankingSubmissionLog user_id={self.user_id}, "
            f"group_id={self.group_id}, count={self.number_of_movies_ranked}>"
        )
