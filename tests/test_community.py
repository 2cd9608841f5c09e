"""Tests for the community consensus tally (pure functions, no database)."""

from conftest import fake_prediction

from app.utils.community import (
    consensus,
    consensus_percent,
    participant_count,
    tally_by_event,
    tally_event,
)
from app.utils.scoring import SESSION_QUALIFYING_MAIN, SESSION_RACE_MAIN


class TestTallyEvent:
    def test_counts_regardless_of_position(self):
        predictions = [
            fake_prediction(1, 1, SESSION_RACE_MAIN, ["norris", "piastri"]),
            fake_prediction(2, 1, SESSION_RACE_MAIN, ["piastri", "leclerc", "x", "y", "norris"]),
        ]
        tally = tally_event(predictions)
        assert tally[SESSION_RACE_MAIN]["norris"] == 2
        assert tally[SESSION_RACE_MAIN]["piastri"] == 2
        assert tally[SESSION_RACE_MAIN]["leclerc"] == 1

    def test_duplicate_in_one_list_counts_once(self):
        predictions = [fake_prediction(1, 1, SESSION_RACE_MAIN, ["norris", "norris", "norris"])]
        assert tally_event(predictions) == {SESSION_RACE_MAIN: {"norris": 1}}

    def test_sessions_kept_apart(self):
        predictions = [
            fake_prediction(1, 1, SESSION_RACE_MAIN, ["norris"]),
            fake_prediction(1, 1, SESSION_QUALIFYING_MAIN, ["leclerc"]),
        ]
        tally = tally_event(predictions)
        assert tally == {
            SESSION_RACE_MAIN: {"norris": 1},
            SESSION_QUALIFYING_MAIN: {"leclerc": 1},
        }

    def test_empty_slots_ignored(self):
        predictions = [
            fake_prediction(1, 1, SESSION_RACE_MAIN, ["", None]),
            fake_prediction(2, 1, SESSION_QUALIFYING_MAIN, None),
        ]
        assert tally_event(predictions) == {}

    def test_no_predictions(self):
        assert tally_event([]) == {}


class TestTallyByEvent:
    def test_groups_by_event(self):
        predictions = [
            fake_prediction(1, 1, SESSION_RACE_MAIN, ["norris"]),
            fake_prediction(2, 2, SESSION_RACE_MAIN, ["norris"]),
            fake_prediction(3, 2, SESSION_RACE_MAIN, ["norris"]),
        ]
        stats = tally_by_event(predictions)
        assert stats[1][SESSION_RACE_MAIN]["norris"] == 1
        assert stats[2][SESSION_RACE_MAIN]["norris"] == 2


class TestConsensus:
    def test_participants_are_distinct_users(self):
        predictions = [
            fake_prediction(1, 1, SESSION_RACE_MAIN, ["norris"]),
            fake_prediction(1, 1, SESSION_QUALIFYING_MAIN, ["norris"]),
            fake_prediction(2, 1, SESSION_RACE_MAIN, ["leclerc"]),
        ]
        assert participant_count(predictions) == 2

    def test_percent_rounded_and_capped(self):
        assert consensus_percent(1, 3) == 33
        assert consensus_percent(2, 3) == 67
        assert consensus_percent(5, 4) == 100

    def test_percent_halves_round_up(self):
        assert consensus_percent(1, 8) == 13
        assert consensus_percent(1, 40) == 3
        assert consensus_percent(3, 8) == 38

    def test_percent_without_users(self):
        assert consensus_percent(3, 0) == 0

    def test_most_voted_first(self):
        tally = {SESSION_RACE_MAIN: {"leclerc": 1, "norris": 3, "piastri": 2}}
        view = consensus(tally, 4)
        assert view[SESSION_RACE_MAIN] == [
            {"driver_id": "norris", "votes": 3, "percent": 75},
            {"driver_id": "piastri", "votes": 2, "percent": 50},
            {"driver_id": "leclerc", "votes": 1, "percent": 25},
        ]

    def test_session_order(self):
        tally = {SESSION_RACE_MAIN: {"norris": 1}, SESSION_QUALIFYING_MAIN: {"norris": 1}}
        view = consensus(tally, 1, sessions=[SESSION_QUALIFYING_MAIN, SESSION_RACE_MAIN])
        assert list(view) == [SESSION_QUALIFYING_MAIN, SESSION_RACE_MAIN]
