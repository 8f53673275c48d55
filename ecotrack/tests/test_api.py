"""
ecotrack/tests/test_api.py

HTTP surface over the fixture session (in-memory store, fixed clock).
"""

import pytest

SIGN_UP = {"email": "ada@example.com", "password": "secret1", "name": "Ada"}


@pytest.fixture
def signed_in(client):
    resp = client.post("/v1/auth/sign-up", json=SIGN_UP)
    assert resp.status_code == 201
    return client


def create_habit(client, **overrides):
    body = {"title": "Shorter shower", "category": "Water Conservation", "points": 15}
    body.update(overrides)
    resp = client.post("/v1/habits", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["habit"]


class TestAuthRoutes:
    def test_sign_up_returns_ready_session(self, client):
        resp = client.post("/v1/auth/sign-up", json=SIGN_UP)
        body = resp.json()
        assert resp.status_code == 201
        assert body["message"] == "Account created successfully!"
        assert body["session"]["state"] == "ready"
        assert body["session"]["user"]["name"] == "Ada"

    def test_duplicate_sign_up_conflict(self, signed_in):
        resp = signed_in.post("/v1/auth/sign-up", json=SIGN_UP)
        body = resp.json()
        assert resp.status_code == 409
        assert body["error"]["code"] == "email-already-in-use"
        assert body["error"]["message"] == "An account already exists with this email address."
        assert body["error"]["request_id"] == resp.headers.get("x-request-id")

    def test_sign_out_and_sign_in(self, signed_in):
        assert signed_in.post("/v1/auth/sign-out").json()["message"] == "Signed out successfully"
        assert signed_in.get("/v1/session").json()["state"] == "signed_out"

        resp = signed_in.post("/v1/auth/sign-in", json={"email": SIGN_UP["email"], "password": "wrong-pass"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "wrong-password"

        resp = signed_in.post("/v1/auth/sign-in", json={"email": SIGN_UP["email"], "password": SIGN_UP["password"]})
        assert resp.status_code == 200
        assert resp.json()["message"] == "Welcome back!"

    def test_overlong_password(self, client):
        resp = client.post("/v1/auth/sign-up", json={**SIGN_UP, "password": "x" * 80})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"
        assert client.get("/v1/session").json()["state"] == "signed_out"

        client.post("/v1/auth/sign-up", json=SIGN_UP)
        client.post("/v1/auth/sign-out")
        resp = client.post("/v1/auth/sign-in", json={"email": SIGN_UP["email"], "password": "x" * 80})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "wrong-password"

    def test_sign_in_with_store_offline_is_unavailable(self, signed_in, documents):
        signed_in.post("/v1/auth/sign-out")
        documents.offline = True

        resp = signed_in.post("/v1/auth/sign-in", json={"email": SIGN_UP["email"], "password": SIGN_UP["password"]})

        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "transient_io"

    def test_routes_require_sign_in(self, client):
        for path in ("/v1/habits", "/v1/stats/today", "/v1/profile", "/v1/badges"):
            resp = client.get(path)
            assert resp.status_code == 401
            assert resp.json()["error"]["code"] == "not-signed-in"


class TestHabitRoutes:
    def test_create_and_list(self, signed_in):
        habit = create_habit(signed_in)
        assert habit["icon"] == "💧"
        assert habit["date"].startswith("2024-01-08")

        listing = signed_in.get("/v1/habits").json()
        assert listing["count"] == 1
        assert listing["habits"][0]["id"] == habit["id"]

        assert signed_in.get("/v1/habits", params={"on": "2024-01-07"}).json()["count"] == 0

    def test_complete_awards_points(self, signed_in):
        habit = create_habit(signed_in, points=15)

        resp = signed_in.post(f"/v1/habits/{habit['id']}/complete")
        body = resp.json()

        assert resp.status_code == 200
        assert body["message"] == "Great job! +15 eco points!"
        assert body["total_points"] == 15
        assert body["unlocked_badges"] == ["eco_beginner"]
        assert body["habit"]["is_completed"] is True

    def test_complete_unknown_habit(self, signed_in):
        resp = signed_in.post("/v1/habits/nope/complete")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_update_and_delete(self, signed_in):
        habit = create_habit(signed_in)

        resp = signed_in.put(f"/v1/habits/{habit['id']}", json={"title": "Cold shower", "points": 20})
        assert resp.status_code == 200
        assert resp.json()["habit"]["title"] == "Cold shower"
        assert resp.json()["habit"]["category"] == "General"

        resp = signed_in.delete(f"/v1/habits/{habit['id']}")
        assert resp.status_code == 200
        assert signed_in.get("/v1/habits").json()["count"] == 0

    def test_invalid_payload_rejected(self, signed_in):
        assert signed_in.post("/v1/habits", json={"title": "x", "points": 0}).status_code == 422
        assert signed_in.post("/v1/habits", json={"title": "x", "category": "Space"}).status_code == 422

    def test_categories(self, client):
        categories = client.get("/v1/habits/categories").json()["categories"]
        assert [c["name"] for c in categories][0] == "Water Conservation"
        assert len(categories) == 6


class TestStatsAndProfile:
    def test_stats(self, signed_in):
        habit = create_habit(signed_in, points=12)
        create_habit(signed_in, title="Compost", category="Waste Reduction")
        signed_in.post(f"/v1/habits/{habit['id']}/complete")

        today = signed_in.get("/v1/stats/today").json()
        assert today["date"] == "2024-01-08"
        assert today["total_count"] == 2
        assert today["completed_count"] == 1
        assert today["points_earned"] == 12
        assert today["categories"] == {"Water Conservation": 1}

        weekly = signed_in.get("/v1/stats/weekly").json()["days"]
        assert len(weekly) == 7
        assert weekly[-1] == {"date": "2024-01-08", "completed_count": 1, "total_count": 2}

        streaks = signed_in.get("/v1/stats/streaks").json()
        assert streaks["current_streak"] == 1
        assert streaks["computed"]["last_active_date"] == "2024-01-08"

    def test_profile_patch(self, signed_in):
        resp = signed_in.patch("/v1/profile", json={"avatar": "🌳", "eco_goal": "Use less plastic"})
        assert resp.status_code == 200
        assert resp.json()["user"]["avatar"] == "🌳"

        profile = signed_in.get("/v1/profile").json()
        assert profile["user"]["eco_goal"] == "Use less plastic"
        assert "🌳" in profile["avatars"]

    def test_profile_patch_rejects_unknown_avatar(self, signed_in):
        resp = signed_in.patch("/v1/profile", json={"avatar": "🚗"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"

    def test_badges(self, signed_in):
        body = signed_in.get("/v1/badges").json()
        assert len(body["badges"]) == 7
        assert body["unlocked_count"] == 0
        assert body["next"]["badge"]["id"] == "eco_beginner"


class TestHealth:
    def test_healthz(self, client):
        assert client.get("/healthz").json() == {"status": "ok"}

    def test_readyz(self, client, documents):
        assert client.get("/readyz").json() == {"status": "ok", "store": "MemoryDocumentStore"}
        documents.offline = True
        assert client.get("/readyz").status_code == 503


class TestSessionSocket:
    def test_snapshot_then_events_and_pong(self, signed_in):
        with signed_in.websocket_connect("/v1/ws/session") as ws:
            first = ws.receive_json()
            assert first["event_type"] == "session.snapshot"
            assert first["state"] == "ready"

            ws.send_text("ping")
            assert ws.receive_json()["type"] == "pong"

            create_habit(signed_in)
            snapshot = ws.receive_json()
            notice = ws.receive_json()
            assert snapshot["reason"] == "habit_added"
            assert len(snapshot["habits"]) == 1
            assert notice == {
                "event_type": "session.notice",
                "level": "success",
                "message": "Habit added successfully!",
                "created_at": notice["created_at"],
            }
