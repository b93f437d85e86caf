import enum

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from . import db, utcnow, isoformat


class UserStatus(enum.Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


user_watchlist = db.Table(
    "user_watchlist",
    db.Column("user_id", db.Integer, db.ForeignKey("users.id"), primary_key=True),
    db.Column(
        "movie_id", db.BigInteger, db.ForeignKey("movies.movie_id"), primary_key=True
    ),
)

user_watched = db.Table(
    "user_watched_movies",
    db.Column("user_id", db.Integer, db.ForeignKey("users.id"), primary_key=True),
    db.Column(
        "movie_id", db.BigInteger, db.ForeignKey("movies.movie_id"), primary_key=True
    ),
)


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(128), unique=True, nullable=False)
    email = db.Column(db.String(128), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    token = db.Column(db.String(64), unique=True, nullable=True)
    status = db.Column(
        db.Enum(UserStatus, name="user_status"),
        default=UserStatus.OFFLINE,
        nullable=False,
    )
    bio = db.Column(db.Text, nullable=True)
    creation_date = db.Column(db.DateTime, default=utcnow)

    # Ordered preference lists, replaced wholesale on update
    favorite_genres = db.Column(db.JSON, default=list, nullable=False)
    favorite_actors = db.Column(db.JSON, default=list, nullable=False)
    favorite_directors = db.Column(db.JSON, default=list, nullable=False)

    favorite_movie_id = db.Column(
        db.BigInteger, db.ForeignKey("movies.movie_id"), nullable=True
    )
    favorite_movie = db.relationship("Movie", lazy=True)

    watchlist = db.relationship(
        "Movie", secondary=user_watchlist, lazy="select", order_by="Movie.title"
    )
    watched_movies = db.relationship(
        "Movie", secondary=user_watched, lazy="select", order_by="Movie.title"
    )

    @property
    def password(self):
        # Prevent reading the password attribute
        raise AttributeError("password is not a readable attribute")

    @password.setter
    def password(self, password):
        # Automatically hash on setting
        self.password_hash = generate_password_hash(password)

    def verify_password(self, password):
        # Check hashed password
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "status": self.status.value if self.status else None,
            "bio": self.bio,
            "creationDate": isoformat(self.creation_date),
            "favoriteGenres": list(self.favorite_genres or []),
            "favoriteActors": list(self.favorite_actors or []),
            "favoriteDirectors": list(self.favorite_directors or []),
            "favoriteMovie": (
                self.favorite_movie.to_dict() if self.favorite_movie else None
            ),
        }

    def to_summary(self):
        return {"id": self.id, "username": self.username}

    def __repr__(self):
        return f"<User id={self.id}, username={self.username}>"
