import unittest

from api_test_case import ApiTestCase
from models import db
from models.friend_request import FriendRequest
from models.friendship import Friendship


class TestFriendSystem(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.alice_id, self.alice_token = self.register("alice")
        self.bob_id, self.bob_token = self.register("bob")

    def send_request(self):
        response = self.client.post(
            f"/friends/add/{self.bob_id}", headers=self.auth(self.alice_token)
        )
        self.assertEqual(response.status_code, 201)
        return response.json["requestId"]

    def test_send_friend_request(self):
        request_id = self.send_request()

        response = self.client.get(
            "/friends/friendrequests/received", headers=self.auth(self.bob_token)
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual([r["requestId"] for r in response.json], [request_id])

        response = self.client.get(
            "/friends/friendrequests/sent", headers=self.auth(self.alice_token)
        )
        self.assertEqual([r["requestId"] for r in response.json], [request_id])

    def test_cannot_befriend_yourself(self):
        response = self.client.post(
            f"/friends/add/{self.alice_id}", headers=self.auth(self.alice_token)
        )
        self.assertEqual(response.status_code, 400)

    def test_duplicate_request_in_either_direction(self):
        self.send_request()
        response = self.client.post(
            f"/friends/add/{self.alice_id}", headers=self.auth(self.bob_token)
        )
        self.assertEqual(response.status_code, 409)

    def test_unknown_receiver(self):
        response = self.client.post(
            "/friends/add/4242", headers=self.auth(self.alice_token)
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json["error"], "Receiver not found")

    def test_accept_creates_symmetric_friendship(self):
        request_id = self.send_request()
        response = self.client.post(
            f"/friends/friendrequest/{request_id}/accept",
            headers=self.auth(self.bob_token),
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json["accepted"])
        self.assertIsNotNone(response.json["responseTime"])

        for token, friend in ((self.alice_token, "bob"), (self.bob_token, "alice")):
            response = self.client.get("/friends", headers=self.auth(token))
            self.assertEqual([f["username"] for f in response.json], [friend])

        with self.app.app_context():
            self.assertEqual(Friendship.query.count(), 2)

    def test_only_receiver_can_respond(self):
        request_id = self.send_request()
        response = self.client.post(
            f"/friends/friendrequest/{request_id}/accept",
            headers=self.auth(self.alice_token),
        )
        self.assertEqual(response.status_code, 403)

    def test_request_cannot_be_answered_twice(self):
        request_id = self.send_request()
        response = self.client.post(
            f"/friends/friendrequest/{request_id}/reject",
            headers=self.auth(self.bob_token),
        )
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json["accepted"])

        response = self.client.post(
            f"/friends/friendrequest/{request_id}/accept",
            headers=self.auth(self.bob_token),
        )
        self.assertEqual(response.status_code, 409)

        with self.app.app_context():
            request = db.session.get(FriendRequest, request_id)
            self.assertFalse(request.accepted)
            self.assertEqual(Friendship.query.count(), 0)

    def test_rejected_request_can_be_sent_again(self):
        request_id = self.send_request()
        self.client.post(
            f"/friends/friendrequest/{request_id}/reject",
            headers=self.auth(self.bob_token),
        )
        self.send_request()

    def test_remove_friend(self):
        request_id = self.send_request()
        self.client.post(
            f"/friends/friendrequest/{request_id}/accept",
            headers=self.auth(self.bob_token),
        )

        response = self.client.delete(
            f"/friends/remove/{self.alice_id}", headers=self.auth(self.bob_token)
        )
        self.assertEqual(response.status_code, 200)

        response = self.client.get("/friends", headers=self.auth(self.alice_token))
        self.assertEqual(response.json, [])
        with self.app.app_context():
            self.assertEqual(Friendship.query.count(), 0)

        # Removing again fails, they are no longer friends
        response = self.client.delete(
            f"/friends/remove/{self.alice_id}", headers=self.auth(self.bob_token)
        )
        self.assertEqual(response.status_code, 400)


if __name__ == "__main__":
    unittest.main()
