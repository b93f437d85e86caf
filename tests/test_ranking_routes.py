import unittest
from datetime import datetime, timedelta
from types import SimpleNamespace

from api_test_case import ApiTestCase
from models.group import Group, GroupPhase
from models.ranking import RankingResult, RankingSubmissionLog, UserMovieRanking
from models import db
from services.ranking_service import compute_standings


class TestRankingSubmission(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.alice_id, self.alice_token = self.register("alice")
        self.bob_id, self.bob_token = self.register("bob")
        self.group_id = self.create_group(self.alice_token)
        self.join(self.group_id, self.alice_token, self.bob_id, self.bob_token)
        self.add_to_pool(self.group_id, 550, self.alice_token)
        self.add_to_pool(self.group_id, 680, self.bob_token)
        self.add_to_pool(self.group_id, 13, self.bob_token)

    def stored_ranks(self, user_id):
        with self.app.app_context():
            rows = UserMovieRanking.query.filter_by(
                user_id=user_id, group_id=self.group_id
            ).all()
            return {row.movie_id: row.rank for row in rows}

    def test_submission_requires_voting_phase(self):
        response = self.submit(
            self.group_id, self.bob_id, self.bob_token, {550: 1, 680: 2, 13: 3}
        )
        self.assertEqual(response.status_code, 409)

    def test_submit_rankings(self):
        self.start_voting(self.group_id, self.alice_token)
        response = self.submit(
            self.group_id, self.bob_id, self.bob_token, {550: 2, 680: 1, 13: 3}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json["rankings"],
            [
                {"movieId": 680, "rank": 1},
                {"movieId": 550, "rank": 2},
                {"movieId": 13, "rank": 3},
            ],
        )
        with self.app.app_context():
            log = RankingSubmissionLog.query.filter_by(user_id=self.bob_id).one()
            self.assertEqual(log.number_of_movies_ranked, 3)

    def test_query_parameter_route(self):
        self.start_voting(self.group_id, self.alice_token)
        response = self.client.post(
            f"/api/users/{self.bob_id}/rankings?groupId={self.group_id}",
            json={"rankings": [
                {"movieId": 550, "rank": 3},
                {"movieId": 680, "rank": 2},
                {"movieId": 13, "rank": 1},
            ]},
            headers=self.auth(self.bob_token),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.stored_ranks(self.bob_id), {550: 3, 680: 2, 13: 1})

        response = self.client.post(
            f"/api/users/{self.bob_id}/rankings", json=[], headers=self.auth(self.bob_token)
        )
        self.assertEqual(response.status_code, 400)

    def test_resubmission_replaces_previous_ranking(self):
        self.start_voting(self.group_id, self.alice_token)
        self.submit(self.group_id, self.bob_id, self.bob_token, {550: 1, 680: 2, 13: 3})
        response = self.submit(
            self.group_id, self.bob_id, self.bob_token, {550: 3, 680: 1, 13: 2}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.stored_ranks(self.bob_id), {550: 3, 680: 1, 13: 2})

    def test_invalid_rankings_leave_previous_submission(self):
        self.start_voting(self.group_id, self.alice_token)
        self.submit(self.group_id, self.bob_id, self.bob_token, {550: 1, 680: 2, 13: 3})

        invalid = [
            {550: 1, 680: 3, 13: 4},   # gap in the ranks
            {550: 1, 680: 3},          # incomplete
            {550: 1, 680: 1, 13: 2},   # repeated rank
            {550: 1, 680: 2, 603: 3},  # movie outside the pool
        ]
        for ranks in invalid:
            response = self.submit(self.group_id, self.bob_id, self.bob_token, ranks)
            self.assertEqual(response.status_code, 400, ranks)

        self.assertEqual(self.stored_ranks(self.bob_id), {550: 1, 680: 2, 13: 3})

    def test_malformed_body(self):
        self.start_voting(self.group_id, self.alice_token)
        bodies = (
            {"rankings": "first"},
            [{"movieId": 550}],
            [{"movieId": True, "rank": 1}],
            [
                {"movieId": 550, "rank": 1.9},
                {"movieId": 680, "rank": 2},
                {"movieId": 13, "rank": 3},
            ],
            [
                {"movieId": 550.5, "rank": 1},
                {"movieId": 680, "rank": 2},
                {"movieId": 13, "rank": 3},
            ],
            [
                {"movieId": 550, "rank": "1"},
                {"movieId": 680, "rank": 2},
                {"movieId": 13, "rank": 3},
            ],
        )
        for body in bodies:
            response = self.client.post(
                f"/groups/{self.group_id}/users/{self.bob_id}/rankings",
                json=body,
                headers=self.auth(self.bob_token),
            )
            self.assertEqual(response.status_code, 400, body)
        self.assertEqual(self.stored_ranks(self.bob_id), {})

    def test_whole_number_floats_are_accepted(self):
        self.start_voting(self.group_id, self.alice_token)
        response = self.client.post(
            f"/groups/{self.group_id}/users/{self.bob_id}/rankings",
            json=[
                {"movieId": 550, "rank": 2.0},
                {"movieId": 680, "rank": 1},
                {"movieId": 13, "rank": 3},
            ],
            headers=self.auth(self.bob_token),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.stored_ranks(self.bob_id), {550: 2, 680: 1, 13: 3})

    def test_cannot_submit_for_someone_else(self):
        self.start_voting(self.group_id, self.alice_token)
        response = self.submit(
            self.group_id, self.alice_id, self.bob_token, {550: 1, 680: 2, 13: 3}
        )
        self.assertEqual(response.status_code, 403)

    def test_rankable_movies(self):
        response = self.client.get(
            f"/groups/{self.group_id}/movies/rankable", headers=self.auth(self.bob_token)
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual([m["movieId"] for m in response.json], [550, 680, 13])


class TestRankingResults(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.alice_id, self.alice_token = self.register("alice")
        self.bob_id, self.bob_token = self.register("bob")
        self.group_id = self.create_group(self.alice_token)
        self.join(self.group_id, self.alice_token, self.bob_id, self.bob_token)

    def calculate(self, token=None):
        return self.client.post(
            f"/groups/{self.group_id}/rankings/calculate",
            headers=self.auth(token or self.alice_token),
        )

    def result_count(self):
        with self.app.app_context():
            return RankingResult.query.count()

    def test_empty_pool(self):
        self.start_voting(self.group_id, self.alice_token)
        response = self.calculate()
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.result_count(), 0)

    def test_no_submissions(self):
        self.add_to_pool(self.group_id, 550, self.alice_token)
        self.start_voting(self.group_id, self.alice_token)
        response = self.calculate()
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.result_count(), 0)

        with self.app.app_context():
            self.assertEqual(db.session.get(Group, self.group_id).phase, GroupPhase.VOTING)

    def test_calculate_winner_and_close(self):
        self.add_to_pool(self.group_id, 550, self.alice_token)
        self.add_to_pool(self.group_id, 680, self.bob_token)
        self.start_voting(self.group_id, self.alice_token)
        self.submit(self.group_id, self.alice_id, self.alice_token, {550: 1, 680: 2})
        self.submit(self.group_id, self.bob_id, self.bob_token, {550: 1, 680: 2})

        # Only the creator may trigger the calculation
        self.assertEqual(self.calculate(self.bob_token).status_code, 403)

        response = self.calculate()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json["winningMovie"]["movieId"], 550)
        self.assertEqual(response.json["averageRank"], 1.0)

        response = self.client.get(
            f"/groups/{self.group_id}", headers=self.auth(self.bob_token)
        )
        self.assertEqual(response.json["phase"], "CLOSED")

        # Closed groups accept no further rankings
        response = self.submit(self.group_id, self.bob_id, self.bob_token, {550: 2, 680: 1})
        self.assertEqual(response.status_code, 409)

    def test_tie_goes_to_higher_tmdb_rating(self):
        # 550 is rated 8.4, 680 is rated 8.5
        self.add_to_pool(self.group_id, 550, self.alice_token)
        self.add_to_pool(self.group_id, 680, self.bob_token)
        self.start_voting(self.group_id, self.alice_token)
        self.submit(self.group_id, self.alice_id, self.alice_token, {550: 1, 680: 2})
        self.submit(self.group_id, self.bob_id, self.bob_token, {550: 2, 680: 1})

        response = self.calculate()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json["averageRank"], 1.5)
        self.assertEqual(response.json["winningMovie"]["movieId"], 680)

    def test_tie_with_equal_rating_is_deterministic(self):
        # 13 and 680 are both rated 8.5, 13 entered the pool first
        self.add_to_pool(self.group_id, 13, self.alice_token)
        self.add_to_pool(self.group_id, 680, self.bob_token)
        self.start_voting(self.group_id, self.alice_token)
        self.submit(self.group_id, self.alice_id, self.alice_token, {13: 2, 680: 1})
        self.submit(self.group_id, self.bob_id, self.bob_token, {13: 1, 680: 2})

        winners = {self.calculate().json["winningMovie"]["movieId"] for _ in range(3)}
        self.assertEqual(winners, {13})
        self.assertEqual(self.result_count(), 3)

    def test_latest_and_complete_results(self):
        self.add_to_pool(self.group_id, 550, self.alice_token)
        self.add_to_pool(self.group_id, 680, self.bob_token)
        self.add_to_pool(self.group_id, 13, self.bob_token)
        self.start_voting(self.group_id, self.alice_token)

        response = self.client.get(
            f"/groups/{self.group_id}/rankings/results/latest",
            headers=self.auth(self.bob_token),
        )
        self.assertEqual(response.status_code, 404)

        self.submit(self.group_id, self.alice_id, self.alice_token, {550: 1, 680: 2, 13: 3})
        self.submit(self.group_id, self.bob_id, self.bob_token, {550: 2, 680: 1, 13: 3})
        result_id = self.calculate().json["resultId"]

        response = self.client.get(
            f"/api/rankings/results/latest?groupId={self.group_id}",
            headers=self.auth(self.bob_token),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json["resultId"], result_id)
        self.assertEqual(response.json["winningMovie"]["movieId"], 680)

        response = self.client.get(
            f"/groups/{self.group_id}/rankings/results", headers=self.auth(self.bob_token)
        )
        self.assertEqual(response.status_code, 200)
        table = [(row["movie"]["movieId"], row["averageRank"], row["votes"]) for row in response.json]
        self.assertEqual(table, [(680, 1.5, 2), (550, 1.5, 2), (13, 3.0, 2)])

    def test_results_for_members_only(self):
        _, carol_token = self.register("carol")
        response = self.client.get(
            f"/groups/{self.group_id}/rankings/results/latest",
            headers=self.auth(carol_token),
        )
        self.assertEqual(response.status_code, 403)


class TestComputeStandings(unittest.TestCase):
    def entry(self, entry_id, movie_id, rating, minutes):
        return SimpleNamespace(
            id=entry_id,
            movie_id=movie_id,
            movie=SimpleNamespace(tmdb_rating=rating),
            added_at=datetime(2024, 1, 1) + timedelta(minutes=minutes),
        )

    def ranks(self, *pairs):
        return [SimpleNamespace(movie_id=m, rank=r) for m, r in pairs]

    def test_lowest_average_wins(self):
        entries = [self.entry(1, 10, 5.0, 0), self.entry(2, 20, 9.0, 1)]
        ranked, unranked = compute_standings(
            entries, self.ranks((10, 1), (20, 2), (10, 1), (20, 2))
        )
        self.assertEqual([s["entry"].movie_id for s in ranked], [10, 20])
        self.assertEqual(ranked[0]["average_rank"], 1.0)
        self.assertEqual(unranked, [])

    def test_unrated_movies_lose_ties(self):
        entries = [self.entry(1, 10, None, 0), self.entry(2, 20, 3.0, 1)]
        ranked, _ = compute_standings(
            entries, self.ranks((10, 1), (20, 2), (10, 2), (20, 1))
        )
        self.assertEqual(ranked[0]["entry"].movie_id, 20)

    def test_earlier_entry_breaks_rating_tie(self):
        entries = [self.entry(2, 20, 7.0, 5), self.entry(1, 10, 7.0, 0)]
        ranked, _ = compute_standings(
            entries, self.ranks((10, 1), (20, 2), (10, 2), (20, 1))
        )
        self.assertEqual(ranked[0]["entry"].movie_id, 10)

    def test_lower_movie_id_breaks_remaining_ties(self):
        entries = [self.entry(1, 20, 7.0, 0), self.entry(1, 10, 7.0, 0)]
        ranked, _ = compute_standings(
            entries, self.ranks((10, 1), (20, 2), (10, 2), (20, 1))
        )
        self.assertEqual(ranked[0]["entry"].movie_id, 10)

    def test_unranked_entries_are_reported(self):
        entries = [self.entry(1, 10, 7.0, 0), self.entry(2, 20, 7.0, 1)]
        ranked, unranked = compute_standings(entries, self.ranks((10, 1)))
        self.assertEqual(len(ranked), 1)
        self.assertEqual([e.movie_id for e in unranked], [20])


if __name__ == "__main__":
    unittest.main()
