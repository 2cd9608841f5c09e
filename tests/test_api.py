"""Tests for the JSON API: auth, predictions, league views and admin."""

import pytest
from conftest import OFFICIAL, PASSWORD

from app.models import Event, Prediction, User
from app.services.scoring_service import ScoringPassError
from app.utils.scoring import SESSION_QUALIFYING_MAIN, SESSION_RACE_MAIN


class TestHealth:
    def test_ok(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.get_json()["database"] == "ok"

    def test_unknown_route_is_json(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert "error" in response.get_json()


class TestAuth:
    def test_register_places_user_last(self, client, make_user):
        make_user("ana")

        response = client.post(
            "/auth/register",
            json={"username": "bia", "email": "bia@example.com", "password": PASSWORD},
        )

        assert response.status_code == 201
        assert response.get_json()["user"]["rank"] == 2

    def test_register_refreshes_cached_leaderboard(self, client, make_user):
        make_user("ana")
        assert len(client.get("/api/leaderboard").get_json()["leaderboard"]) == 1

        client.post(
            "/auth/register",
            json={"username": "bia", "email": "bia@example.com", "password": PASSWORD},
        )

        board = client.get("/api/leaderboard").get_json()["leaderboard"]
        assert [row["username"] for row in board] == ["ana", "bia"]

    def test_register_rejects_reserved_prefix(self, client):
        response = client.post(
            "/auth/register",
            json={"username": "guest_x", "email": "g@example.com", "password": PASSWORD},
        )
        assert response.status_code == 400

    def test_register_rejects_duplicate(self, client, make_user):
        make_user("ana")
        response = client.post(
            "/auth/register",
            json={"username": "ana", "email": "other@example.com", "password": PASSWORD},
        )
        assert response.status_code == 400

    def test_login_and_me(self, client, make_user, login):
        login(make_user("ana"))
        response = client.get("/auth/me")
        assert response.get_json()["username"] == "ana"

    def test_bad_password(self, client, make_user):
        make_user("ana")
        response = client.post("/auth/login", json={"username": "ana", "password": "nope"})
        assert response.status_code == 401

    def test_me_requires_login(self, client):
        assert client.get("/auth/me").status_code == 401

    def test_guest_is_not_ranked(self, client, make_user):
        make_user("ana")
        response = client.post("/auth/guest")

        assert response.status_code == 201
        assert response.get_json()["user"]["is_guest"]
        assert len(User.ranked_users()) == 1


class TestPredictions:
    def test_submit_and_list(self, client, make_user, make_event, drivers, login):
        login(make_user("ana"))
        make_event(1)

        response = client.post(
            "/api/predictions",
            json={"event_id": 1, "session": SESSION_RACE_MAIN, "top5": OFFICIAL},
        )
        assert response.status_code == 200
        assert response.headers["Cache-Control"].startswith("no-store")

        listed = client.get("/api/predictions?event_id=1").get_json()["predictions"]
        assert [p["top5"] for p in listed] == [OFFICIAL]

    def test_resubmit_overwrites(self, client, make_user, make_event, drivers, login):
        login(make_user("ana"))
        make_event(1)
        payload = {"event_id": 1, "session": SESSION_RACE_MAIN, "top5": ["norris"]}

        client.post("/api/predictions", json=payload)
        payload["top5"] = ["piastri"]
        response = client.post("/api/predictions", json=payload)

        assert response.get_json()["message"] == "Prediction updated successfully"
        assert Prediction.query.count() == 1

    def test_closed_session(self, client, make_user, make_event, drivers, login, db):
        login(make_user("ana"))
        event = make_event(1)
        event.toggle_session(SESSION_RACE_MAIN)
        db.session.commit()

        response = client.post(
            "/api/predictions",
            json={"event_id": 1, "session": SESSION_RACE_MAIN, "top5": OFFICIAL},
        )
        assert response.status_code == 400

    def test_invalid_picks(self, client, make_user, make_event, drivers, login):
        login(make_user("ana"))
        make_event(1)

        response = client.post(
            "/api/predictions",
            json={"event_id": 1, "session": SESSION_RACE_MAIN, "top5": ["norris", "norris"]},
        )
        assert response.status_code == 400

    def test_unknown_event(self, client, make_user, drivers, login):
        login(make_user("ana"))
        response = client.post(
            "/api/predictions",
            json={"event_id": 99, "session": SESSION_RACE_MAIN, "top5": []},
        )
        assert response.status_code == 404

    def test_missing_fields(self, client, make_user, login):
        login(make_user("ana"))
        assert client.post("/api/predictions", json={"top5": []}).status_code == 400

    def test_guest_cannot_submit(self, client, make_event, drivers):
        make_event(1)
        client.post("/auth/guest")

        response = client.post(
            "/api/predictions",
            json={"event_id": 1, "session": SESSION_RACE_MAIN, "top5": OFFICIAL},
        )
        assert response.status_code == 403

    def test_requires_login(self, client):
        assert client.post("/api/predictions", json={}).status_code == 401


class TestLeagueViews:
    def test_calendar_and_active_event(self, app, client, make_event):
        make_event(1)
        make_event(2, is_sprint=True, status=Event.STATUS_OPEN)

        data = client.get("/api/calendar").get_json()
        assert data["season"] == app.config["SEASON_YEAR"]
        events = data["events"]
        assert [e["id"] for e in events] == [1, 2]
        assert len(events[1]["sessions"]) == 4

        assert client.get("/api/events/active").get_json()["id"] == 2

    def test_no_active_event(self, client):
        assert client.get("/api/events/active").status_code == 404

    def test_drivers(self, client, drivers):
        listed = client.get("/api/drivers").get_json()["drivers"]
        assert "norris" in {d["id"] for d in listed}

    def test_leaderboard_follows_scoring_pass(
        self, client, make_user, make_event, make_prediction, admin, login
    ):
        ana = make_user("ana")
        event = make_event(1, results={SESSION_RACE_MAIN: list(OFFICIAL)})
        make_prediction(ana, event, SESSION_RACE_MAIN, list(OFFICIAL))

        before = client.get("/api/leaderboard").get_json()["leaderboard"]
        assert before[0]["username"] == "admin"

        login(admin)
        assert client.post("/admin/score", json={"event_id": 1}).status_code == 200

        after = client.get("/api/leaderboard").get_json()["leaderboard"]
        assert [(row["username"], row["points"]) for row in after] == [("ana", 25), ("admin", 0)]

    def test_event_leaderboard(self, client, make_user, make_event, make_prediction):
        ana = make_user("ana")
        bia = make_user("bia")
        event = make_event(1, results={SESSION_RACE_MAIN: list(OFFICIAL)})
        make_prediction(ana, event, SESSION_RACE_MAIN, ["norris"])
        make_prediction(bia, event, SESSION_RACE_MAIN, list(OFFICIAL))

        board = client.get("/api/leaderboard/events/1").get_json()["leaderboard"]
        assert [(row["user_id"], row["points"], row["rank"]) for row in board] == [
            (bia.id, 25, 1),
            (ana.id, 5, 2),
        ]

    def test_user_stats_hide_guests(self, client, make_user):
        guest = make_user("guest_1", is_guest=True)
        assert client.get(f"/api/stats/users/{guest.id}").status_code == 404

    def test_community_consensus(self, client, make_user, make_event, make_prediction):
        event = make_event(1)
        make_prediction(make_user("ana"), event, SESSION_RACE_MAIN, ["norris", "piastri"])
        make_prediction(make_user("bia"), event, SESSION_RACE_MAIN, ["norris"])
        make_prediction(make_user("guest_1", is_guest=True), event, SESSION_RACE_MAIN, ["alonso"])

        data = client.get("/api/community/1").get_json()

        assert data["participants"] == 2
        assert data["sessions"][SESSION_RACE_MAIN][0] == {
            "driver_id": "norris",
            "votes": 2,
            "percent": 100,
        }
        assert SESSION_QUALIFYING_MAIN not in data["sessions"]


class TestOpponentPredictions:
    @pytest.fixture
    def race(self, make_user, make_event, make_prediction):
        ana = make_user("ana")
        bia = make_user("bia")
        event = make_event(1)
        make_prediction(bia, event, SESSION_RACE_MAIN, list(OFFICIAL))
        return ana, event

    def test_hidden_while_open(self, client, login, race):
        ana, _ = race
        login(ana)
        response = client.get(f"/api/events/1/opponents?session={SESSION_RACE_MAIN}")
        assert response.status_code == 403

    def test_revealed_once_closed(self, client, login, race, db):
        ana, event = race
        event.toggle_session(SESSION_RACE_MAIN)
        event.set_results(SESSION_RACE_MAIN, list(OFFICIAL))
        db.session.commit()
        login(ana)

        data = client.get("/api/events/1/opponents").get_json()

        assert list(data["sessions"]) == [SESSION_RACE_MAIN]
        assert data["sessions"][SESSION_RACE_MAIN][0]["points"] == 25

    def test_bad_session(self, client, login, race):
        ana, _ = race
        login(ana)
        assert client.get("/api/events/1/opponents?session=Sprint").status_code == 400


class TestAdmin:
    def test_non_admin_rejected(self, client, make_user, login):
        login(make_user("ana"))
        assert client.post("/admin/score", json={}).status_code == 403

    def test_toggle_session(self, client, admin, make_event, login):
        event = make_event(1)
        login(admin)

        response = client.post(f"/admin/events/1/sessions/{SESSION_RACE_MAIN}/toggle")

        assert response.status_code == 200
        assert response.get_json()["event"]["sessions"][1]["is_open"] is False
        assert not event.is_session_open(SESSION_RACE_MAIN)

    def test_set_result_slot(self, client, admin, make_event, drivers, login):
        make_event(1)
        login(admin)

        response = client.put(
            f"/admin/events/1/results/{SESSION_RACE_MAIN}/0", json={"driver_id": "norris"}
        )

        assert response.status_code == 200
        assert response.get_json()["event"]["results"][SESSION_RACE_MAIN][0] == "norris"

    def test_set_results_rejects_unknown_driver(self, client, admin, make_event, drivers, login):
        make_event(1)
        login(admin)

        response = client.put(
            f"/admin/events/1/results/{SESSION_RACE_MAIN}", json={"top5": ["norris", "ghost"]}
        )
        assert response.status_code == 400

    def test_score_requires_results(self, client, admin, make_event, login):
        make_event(1)
        login(admin)
        assert client.post("/admin/score", json={"event_id": 1}).status_code == 400
        assert client.post("/admin/score", json={"event_id": 9}).status_code == 404

    def test_score_failure_is_503(self, client, admin, login, monkeypatch):
        def failing_pass(**kwargs):
            raise ScoringPassError("Could not update the league standings")

        monkeypatch.setattr("app.routes.admin.routes.run_scoring_pass", failing_pass)
        login(admin)

        response = client.post("/admin/score", json={})
        assert response.status_code == 503

    def test_reset_needs_confirmation(self, client, admin, login):
        login(admin)
        assert client.post("/admin/reset", json={}).status_code == 400
        assert client.post("/admin/reset", json={"confirm": True}).status_code == 200

    def test_cannot_delete_self(self, client, admin, login):
        login(admin)
        assert client.delete(f"/admin/users/{admin.id}").status_code == 400

    def test_delete_user(self, client, admin, make_user, login):
        ana = make_user("ana")
        login(admin)

        assert client.delete(f"/admin/users/{ana.id}").status_code == 200
        actions = client.get("/admin/actions").get_json()["actions"]
        assert actions[0]["action_type"] == "delete_user"

    def test_status(self, client, admin, login):
        login(admin)
        data = client.get("/admin/status").get_json()
        assert data["connections"]["total_connections"] == 0
        assert data["cache"]["type"] == "SimpleCache"
