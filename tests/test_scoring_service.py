"""Tests for the scoring pass, season reset and user removal."""

import pytest
from conftest import OFFICIAL
from sqlalchemy.exc import SQLAlchemyError

from app.models import AdminAction, Event, Prediction, User
from app.services.scoring_service import (
    ScoringPassError,
    delete_user,
    reset_season,
    run_scoring_pass,
)
from app.utils.scoring import SESSION_QUALIFYING_MAIN, SESSION_RACE_MAIN


@pytest.fixture
def season(make_user, make_event, make_prediction):
    """Two players, one scored race: bia picked it exactly, ana reversed it."""
    ana = make_user("ana")
    bia = make_user("bia")
    event = make_event(1, results={SESSION_RACE_MAIN: list(OFFICIAL)})
    make_event(2)

    make_prediction(ana, event, SESSION_RACE_MAIN, list(reversed(OFFICIAL)))
    make_prediction(bia, event, SESSION_RACE_MAIN, list(OFFICIAL))
    return ana, bia, event


class TestRunScoringPass:
    def test_points_and_ranks(self, season):
        ana, bia, _ = season

        leaderboard = run_scoring_pass()

        assert [row["username"] for row in leaderboard] == ["bia", "ana"]
        assert (bia.points, bia.rank, bia.rank_history) == (25, 1, [1])
        assert (ana.points, ana.rank, ana.rank_history) == (9, 2, [2])

    def test_previous_rank_kept(self, season):
        ana, bia, _ = season
        run_scoring_pass()
        assert (ana.previous_rank, bia.previous_rank) == (1, 2)

    def test_repeat_pass_only_grows_history(self, season):
        ana, bia, _ = season

        run_scoring_pass()
        run_scoring_pass()

        assert (bia.points, ana.points) == (25, 9)
        assert bia.rank_history == [1, 1]
        assert ana.rank_history == [2, 2]
        assert bia.weeks_at_one == 2

    def test_unscored_sessions_ignored(self, season, make_prediction):
        ana, _, event = season
        make_prediction(ana, event, SESSION_QUALIFYING_MAIN, list(OFFICIAL))

        run_scoring_pass()

        assert ana.points == 9

    def test_ties_follow_registration_order(self, make_user):
        users = [make_user(name) for name in ("carla", "ana", "bia")]

        run_scoring_pass()

        assert [u.rank for u in users] == [1, 2, 3]

    def test_guests_not_ranked(self, season, make_user, make_prediction):
        _, _, event = season
        guest = make_user("guest_1", is_guest=True)
        make_prediction(guest, event, SESSION_RACE_MAIN, list(OFFICIAL))

        leaderboard = run_scoring_pass()

        assert "guest_1" not in [row["username"] for row in leaderboard]
        assert (guest.points, guest.rank, guest.rank_history) == (0, 0, [])

    def test_triggering_event_finished(self, season, admin):
        _, _, event = season

        run_scoring_pass(event_id=event.id, admin_user=admin)

        assert event.status == Event.STATUS_FINISHED
        action = AdminAction.query.filter_by(action_type="scoring_pass").one()
        assert action.event_id == event.id
        assert action.admin_user_id == admin.id
        assert action.action_metadata["predictions_scored"] == 2

    def test_history_limit(self, app, season):
        _, bia, _ = season
        app.config["RANK_HISTORY_LIMIT"] = 2

        for _ in range(3):
            run_scoring_pass()

        assert bia.rank_history == [1, 1]

    def test_no_users(self, app):
        assert run_scoring_pass() == []

    def test_failure_rolls_back(self, season, db, monkeypatch):
        ana, bia, event = season

        def failing_commit():
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(db.session(), "commit", failing_commit)

        with pytest.raises(ScoringPassError):
            run_scoring_pass(event_id=event.id)

        monkeypatch.undo()
        assert (ana.points, ana.rank, ana.rank_history) == (0, 1, [])
        assert (bia.points, bia.rank, bia.rank_history) == (0, 2, [])
        assert event.status == Event.STATUS_UPCOMING
        assert AdminAction.query.count() == 0


class TestResetSeason:
    def test_clears_predictions_and_standing(self, season):
        ana, bia, _ = season
        run_scoring_pass()

        deleted = reset_season()

        assert deleted == 2
        assert Prediction.query.count() == 0
        for user in (ana, bia):
            assert (user.points, user.rank, user.previous_rank, user.rank_history) == (
                0,
                0,
                None,
                [],
            )

    def test_calendar_untouched(self, season):
        _, _, event = season
        reset_season()
        assert event.results == {SESSION_RACE_MAIN: OFFICIAL}

    def test_logged(self, season, admin):
        reset_season(admin_user=admin)
        action = AdminAction.query.filter_by(action_type="reset_season").one()
        assert action.action_metadata == {"predictions_deleted": 2}


class TestDeleteUser:
    def test_removes_user_and_predictions(self, season, admin):
        ana, bia, _ = season
        ana_id = ana.id

        deleted = delete_user(ana, admin_user=admin)

        assert deleted == 1
        assert [u.username for u in User.ranked_users()] == ["bia", "admin"]
        assert [p.user_id for p in Prediction.query.all()] == [bia.id]

        action = AdminAction.query.filter_by(action_type="delete_user").one()
        assert action.target_user_id == ana_id

    def test_ranks_close_up_points_kept(self, season):
        ana, bia, _ = season
        run_scoring_pass()

        delete_user(bia)

        assert (ana.rank, ana.points, ana.rank_history) == (1, 9, [2])

    def test_registration_after_deletion_is_placed_last(self, make_user):
        first = make_user("aaa")
        make_user("bbb")
        make_user("ccc")
        run_scoring_pass()

        delete_user(first)
        make_user("ddd")

        leaderboard = User.get_leaderboard()
        assert [row["rank"] for row in leaderboard] == [1, 2, 3]
        assert [row["username"] for row in leaderboard] == ["bbb", "ccc", "ddd"]

    def test_unranked_users_left_at_zero(self, season):
        ana, bia, _ = season
        reset_season()

        delete_user(ana)

        assert bia.rank == 0
