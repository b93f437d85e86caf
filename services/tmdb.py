import json
import logging
from datetime import datetime

import redis
import requests

logger = logging.getLogger(__name__)

GENRE_ID_TO_NAME = {
    28: "Action",
    12: "Adventure",
    16: "Animation",
    35: "Comedy",
    80: "Crime",
    99: "Documentary",
    18: "Drama",
    10751: "Family",
    14: "Fantasy",
    36: "History",
    27: "Horror",
    10402: "Music",
    9648: "Mystery",
    10749: "Romance",
    878: "Science Fiction",
    10770: "TV Movie",
    53: "Thriller",
    10752: "War",
    37: "Western",
}

GENRE_NAME_TO_ID = {name.lower(): genre_id for genre_id, name in GENRE_ID_TO_NAME.items()}

MAX_ACTORS = 10
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v="


class TMDbUnavailableError(Exception):
    """TMDb could not be reached or answered with a server error."""


class TMDbClient:
    """
    Thin wrapper around the TMDb v3 REST API.

    Results are returned as plain dicts shaped like the columns of
    models.movie.Movie, so the catalog can upsert them directly.
    """

    def __init__(
        self,
        api_token,
        base_url="https://api.themoviedb.org/3",
        image_base="https://image.tmdb.org/t/p/w500",
        timeout=5,
        redis_client=None,
        cache_ttl=3600,
    ):
        self.api_token = api_token or ""
        self.base_url = base_url.rstrip("/")
        self.image_base = image_base
        self.timeout = timeout
        self.redis = redis_client
        self.cache_ttl = cache_ttl
        self.http = requests.Session()

    @classmethod
    def from_config(cls, config, redis_client=None):
        return cls(
            api_token=config.get("TMDB_API_TOKEN"),
            base_url=config.get("TMDB_BASE_URL", "https://api.themoviedb.org/3"),
            image_base=config.get("TMDB_IMAGE_BASE", "https://image.tmdb.org/t/p/w500"),
            timeout=config.get("TMDB_TIMEOUT", 5),
            redis_client=redis_client,
            cache_ttl=config.get("TMDB_CACHE_TTL", 3600),
        )

    @property
    def configured(self):
        return bool(self.api_token)

    # =================================
    #         HTTP helpers
    # =================================

    def _get(self, path, params=None):
        headers = {
            "Authorization": f"Bearer {self.api_token}",
            "Accept": "application/json",
        }
        try:
            response = self.http.get(
                f"{self.base_url}{path}",
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TMDbUnavailableError(f"TMDb request failed: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise TMDbUnavailableError(
                f"TMDb answered {response.status_code} for {path}"
            )
        return response.json()

    def _cache_get(self, key):
        if self.redis is None:
            return None
        try:
            raw = self.redis.get(key)
        except redis.exceptions.RedisError as e:
            logger.warning("Redis read failed for %s: %s", key, e)
            return None
        return json.loads(raw) if raw else None

    def _cache_set(self, key, value):
        if self.redis is None:
            return
        try:
            self.redis.setex(key, self.cache_ttl, json.dumps(value))
        except redis.exceptions.RedisError as e:
            logger.warning("Redis write failed for %s: %s", key, e)

    # =================================
    #         Public API
    # =================================

    def get_movie_details(self, movie_id):
        """
        Fetch a single movie with credits and videos.

        Returns None when TMDb does not know the id (or no token is set),
        raises TMDbUnavailableError when TMDb cannot be reached.
        """
        if not self.configured:
            logger.warning("TMDB API token is not configured. Cannot get movie details.")
            return None

        cache_key = f"tmdb-movie-{movie_id}"
        cached = self._cache_get(cache_key)
        if cached:
            return cached

        data = self._get(
            f"/movie/{movie_id}", params={"append_to_response": "videos,credits"}
        )
        if not data:
            return None

        movie = self.map_movie(data)
        self._cache_set(cache_key, movie)
        return movie

    def search_movies(self, title=None, genres=None, year=None, actors=None, directors=None):
        """
        Title searches go to /search/movie, everything else to /discover/movie.
        Failures are logged and yield an empty list.
        """
        if not self.configured:
            logger.warning("TMDB API token is not configured. Skipping external search.")
            return []

        if title:
            path = "/search/movie"
            params = {"query": title.strip()}
            if year:
                params["primary_release_year"] = year
        else:
            path = "/discover/movie"
            params = {"sort_by": "popularity.desc"}
            if year:
                params["primary_release_year"] = year
            genre_ids = [
                str(GENRE_NAME_TO_ID[g.lower()])
                for g in genres or []
                if g and g.lower() in GENRE_NAME_TO_ID
            ]
            if genre_ids:
                params["with_genres"] = ",".join(genre_ids)
            if actors:
                params["with_cast"] = ",".join(str(a) for a in actors)
            if directors:
                params["with_crew"] = ",".join(str(d) for d in directors)

        try:
            data = self._get(path, params=params)
        except TMDbUnavailableError as e:
            logger.error("Error communicating with TMDb API: %s", e)
            return []

        results = (data or {}).get("results", [])
        return [self.map_movie(item) for item in results if item.get("id")]

    def get_genres(self):
        if not self.configured:
            logger.warning("TMDB API token is not configured. Cannot get genres.")
            return []
        try:
            data = self._get("/genre/movie/list")
        except TMDbUnavailableError as e:
            logger.error("Error getting genres from TMDb: %s", e)
            return []
        return (data or {}).get("genres", [])

    # =================================
    #         Mapping
    # =================================

    def map_movie(self, data):
        """Map a TMDb movie payload (search or details) onto Movie columns."""
        year = None
        release_date = data.get("release_date")
        if release_date:
            try:
                year = datetime.strptime(release_date, "%Y-%m-%d").year
            except ValueError:
                logger.warning("Could not parse release date: %s", release_date)

        if "genre_ids" in data:
            genres = [GENRE_ID_TO_NAME.get(gid, "Unknown") for gid in data["genre_ids"]]
        else:
            genres = [
                g.get("name") or GENRE_ID_TO_NAME.get(g.get("id"), "Unknown")
                for g in data.get("genres", [])
            ]

        credits = data.get("credits") or {}
        actors = [
            person["name"]
            for person in credits.get("cast", [])[:MAX_ACTORS]
            if person.get("name")
        ]
        directors = [
            person["name"]
            for person in credits.get("crew", [])
            if person.get("job") == "Director" and person.get("name")
        ]

        trailer_url = None
        for video in (data.get("videos") or {}).get("results", []):
            if video.get("site") == "YouTube" and video.get("type") == "Trailer":
                trailer_url = YOUTUBE_WATCH_URL + video["key"]
                break

        poster_path = data.get("poster_path")
        return {
            "movie_id": data["id"],
            "title": data.get("title") or "",
            "year": year,
            "description": data.get("overview"),
            "poster_url": f"{self.image_base}{poster_path}" if poster_path else None,
            "trailer_url": trailer_url,
            "original_language": data.get("original_language"),
            "tmdb_rating": data.get("vote_average"),
            "genres": genres,
            "actors": actors,
            "directors": directors,
            "spoken_languages": [
                lang.get("english_name") or lang.get("name")
                for lang in data.get("spoken_languages", [])
                if lang.get("english_name") or lang.get("name")
            ],
        }
