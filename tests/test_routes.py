"""Tests for the membership and chat routes."""

from __future__ import annotations

import datetime

from tests.helpers import EVENT_DATE, HOST_ID, ApiTestCase, existing_ids, seed_event

T0 = datetime.datetime(2026, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)


class MembershipRoutesTestCase(ApiTestCase):
    """Test case for the RSVP endpoints under ``/events``."""

    def setUp(self) -> None:
        super().setUp()
        self.event_ref = seed_event(self.db, "E1", title="Rooftop Jazz")

    def seed_member(self, collection: str, user_id: str) -> None:
        self.event_ref.collection(collection).document(user_id).set(
            {"userId": user_id, "requestedAt": EVENT_DATE}
        )

    def test_rsvp(self) -> None:
        response = self.client.post("/events/E1/rsvp", headers=self.auth("U1"))

        self.assertEqual(response.status_code, 201)
        self.assertEqual(
            response.get_json()["request"],
            {"id": "U1", "userId": "U1", "status": "pending"},
        )
        self.assertEqual(existing_ids(self.event_ref.collection("pending")), ["U1"])

    def test_rsvp_twice_conflicts(self) -> None:
        self.client.post("/events/E1/rsvp", headers=self.auth("U1"))
        response = self.client.post("/events/E1/rsvp", headers=self.auth("U1"))
        self.assertEqual(response.status_code, 409)

    def test_rsvp_own_event(self) -> None:
        response = self.client.post("/events/E1/rsvp", headers=self.auth(HOST_ID))
        self.assertEqual(response.status_code, 400)

    def test_rsvp_missing_event(self) -> None:
        response = self.client.post("/events/missing/rsvp", headers=self.auth("U1"))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json(), {"error": "Event not found."})

    def test_rsvp_requires_login(self) -> None:
        response = self.client.post("/events/E1/rsvp")
        self.assertEqual(response.status_code, 401)

    def test_pass(self) -> None:
        response = self.client.post("/events/E1/pass", headers=self.auth("U1"))
        self.assertEqual(response.get_json(), {"passed": "E1"})

    def test_list_members(self) -> None:
        self.seed_member("pending", "U1")
        self.seed_member("attendees", "U2")

        response = self.client.get("/events/E1/members", headers=self.auth(HOST_ID))

        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual([m["userId"] for m in data["pending"]], ["U1"])
        self.assertEqual([m["userId"] for m in data["accepted"]], ["U2"])
        self.assertEqual(data["rejected"], [])

    def test_list_members_not_host(self) -> None:
        response = self.client.get("/events/E1/members", headers=self.auth("U1"))
        self.assertEqual(response.status_code, 403)

    def test_accept(self) -> None:
        self.seed_member("pending", "U1")

        response = self.client.post(
            "/events/E1/members/U1/accept", headers=self.auth(HOST_ID)
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.get_json(),
            {"eventId": "E1", "userId": "U1", "status": "accepted", "chatJoined": True},
        )
        chat = self.db.collection("chats").document("E1").get().to_dict()
        self.assertEqual(chat["participants"], [HOST_ID, "U1"])

    def test_accept_not_host(self) -> None:
        self.seed_member("pending", "U1")
        response = self.client.post(
            "/events/E1/members/U1/accept", headers=self.auth("U2")
        )
        self.assertEqual(response.status_code, 403)

    def test_decline_after_accept_conflicts(self) -> None:
        self.seed_member("attendees", "U1")

        response = self.client.post(
            "/events/E1/members/U1/decline", headers=self.auth(HOST_ID)
        )

        self.assertEqual(response.status_code, 409)
        self.assertEqual(
            response.get_json(), {"error": "The request is no longer pending."}
        )
        self.assertEqual(existing_ids(self.event_ref.collection("declined")), [])

    def test_decline(self) -> None:
        self.seed_member("pending", "U1")
        response = self.client.post(
            "/events/E1/members/U1/decline", headers=self.auth(HOST_ID)
        )
        self.assertEqual(response.get_json()["status"], "rejected")
        self.assertFalse(response.get_json()["chatJoined"])


class ChatRoutesTestCase(ApiTestCase):
    """Test case for the ``/chats`` endpoints."""

    config = {"RAUXA_MESSAGES_PER_LOAD": 2}

    def setUp(self) -> None:
        super().setUp()
        seed_event(self.db, "E1", title="Rooftop Jazz")
        self.chat_ref = self.db.collection("chats").document("E1")
        self.chat_ref.set(
            {
                "eventId": "E1",
                "name": "Rooftop Jazz",
                "hostId": HOST_ID,
                "type": "event_group",
                "participants": [HOST_ID, "U1"],
                "lastMessageTimestamp": T0,
            }
        )
        for i in range(3):
            self.chat_ref.collection("messages").document(f"m{i}").set(
                {
                    "senderId": "U1",
                    "text": f"hello {i}",
                    "timestamp": T0 + datetime.timedelta(minutes=i),
                }
            )

    def test_list_chats(self) -> None:
        response = self.client.get("/chats/", headers=self.auth("U1"))
        chats = response.get_json()["chats"]
        self.assertEqual([c["id"] for c in chats], ["E1"])
        self.assertFalse(chats[0]["hasUnread"])

    def test_view_chat(self) -> None:
        response = self.client.get("/chats/E1", headers=self.auth("U1"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["headerName"], "Rooftop Jazz")

    def test_view_chat_outsider(self) -> None:
        response = self.client.get("/chats/E1", headers=self.auth("U9"))
        self.assertEqual(response.status_code, 403)

    def test_messages_use_configured_page_size(self) -> None:
        response = self.client.get("/chats/E1/messages", headers=self.auth("U1"))

        data = response.get_json()
        self.assertEqual([m["id"] for m in data["messages"]], ["m0", "m1"])
        self.assertTrue(data["hasMore"])

        response = self.client.get(
            "/chats/E1/messages?after=m1", headers=self.auth("U1")
        )
        data = response.get_json()
        self.assertEqual([m["id"] for m in data["messages"]], ["m2"])
        self.assertFalse(data["hasMore"])

    def test_messages_bad_limit(self) -> None:
        response = self.client.get(
            "/chats/E1/messages?limit=0", headers=self.auth("U1")
        )
        self.assertEqual(response.status_code, 400)

    def test_send_message(self) -> None:
        response = self.client.post(
            "/chats/E1/messages", json={"text": "On my way"}, headers=self.auth("U1")
        )

        self.assertEqual(response.status_code, 201)
        message = response.get_json()["message"]
        self.assertEqual(message["text"], "On my way")
        self.assertEqual(message["senderId"], "U1")
        flag = self.chat_ref.collection("new").document(HOST_ID).get().to_dict()
        self.assertTrue(flag["new"])

    def test_send_empty_message(self) -> None:
        response = self.client.post(
            "/chats/E1/messages", json={}, headers=self.auth("U1")
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json(), {"error": "Message text is required."})

    def test_mark_seen(self) -> None:
        self.chat_ref.collection("new").document("U1").set({"new": True})
        response = self.client.post("/chats/E1/seen", headers=self.auth("U1"))
        self.assertEqual(response.get_json(), {"seen": "E1"})
        flag = self.chat_ref.collection("new").document("U1").get().to_dict()
        self.assertFalse(flag["new"])

    def test_sync(self) -> None:
        attendees = self.db.collection("live").document("E1").collection("attendees")
        attendees.document("U1").set({"userId": "U1"})
        attendees.document("U2").set({"userId": "U2"})

        response = self.client.post("/chats/E1/sync", headers=self.auth(HOST_ID))

        self.assertEqual(response.get_json(), {"added": ["U2"]})
        self.assertEqual(
            self.chat_ref.get().to_dict()["participants"], [HOST_ID, "U1", "U2"]
        )

    def test_sync_not_host(self) -> None:
        response = self.client.post("/chats/E1/sync", headers=self.auth("U1"))
        self.assertEqual(response.status_code, 403)
