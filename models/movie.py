from . import db, utcnow


class Movie(db.Model):
    """Local cache of TMDb movie metadata, keyed by the TMDb id."""

    __tablename__ = "movies"

    movie_id = db.Column(db.BigInteger, primary_key=True, autoincrement=False)  # TMDB Movie ID
    title = db.Column(db.String(255), nullable=False)
    year = db.Column(db.Integer, nullable=True)
    description = db.Column(db.Text, nullable=True)  # Movie overview
    poster_url = db.Column(db.String(512), nullable=True)
    trailer_url = db.Column(db.String(512), nullable=True)
    original_language = db.Column(db.String(16), nullable=True)
    tmdb_rating = db.Column(db.Float, nullable=True)  # TMDB vote average (0-10)
    genres = db.Column(db.JSON, default=list, nullable=False)
    actors = db.Column(db.JSON, default=list, nullable=False)
    directors = db.Column(db.JSON, default=list, nullable=False)
    spoken_languages = db.Column(db.JSON, default=list, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def __eq__(self, other):
        if not isinstance(other, Movie):
            return NotImplemented
        return self.movie_id is not None and self.movie_id == other.movie_id

    def __hash__(self):
        return hash(self.movie_id)

    def to_dict(self):
        return {
            "movieId": self.movie_id,
            "title": self.title,
            "year": self.year,
            "description": self.description,
            "posterURL": self.poster_url,
            "trailerURL": self.trailer_url,
            "originalLanguage": self.original_language,
            "tmdbRating": self.tmdb_rating,
            "genres": list(self.genres or []),
            "actors": list(self.actors or []),
            "directors": list(self.directors or []),
            "spokenLanguages": list(self.spoken_languages or []),
        }

    def __repr__(self):
        return f"<Movie movie_id={self.movie_id}, title={self.title}>"
