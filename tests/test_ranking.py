"""Tests for the ranking engine (pure functions, no database)."""

from types import SimpleNamespace

from app.utils.ranking import (
    append_rank_history,
    leadership_table,
    previous_rank,
    rank_delta,
    rank_entries,
    weeks_at_one,
)


class TestRankEntries:
    def test_sorted_by_points_descending(self):
        ranked = rank_entries(
            [{"name": "a", "points": 3}, {"name": "b", "points": 10}, {"name": "c", "points": 7}]
        )
        assert [e["name"] for e in ranked] == ["b", "c", "a"]
        assert [e["rank"] for e in ranked] == [1, 2, 3]

    def test_ties_keep_input_order(self):
        entries = [
            {"name": "first", "points": 5},
            {"name": "second", "points": 9},
            {"name": "third", "points": 5},
            {"name": "fourth", "points": 5},
        ]
        ranked = rank_entries(entries)
        assert [e["name"] for e in ranked] == ["second", "first", "third", "fourth"]

    def test_ranks_are_dense(self):
        entries = [{"points": p} for p in (0, 0, 4, 4, 4, 1)]
        ranked = rank_entries(entries)
        assert sorted(e["rank"] for e in ranked) == list(range(1, len(entries) + 1))

    def test_overwrites_existing_rank(self):
        ranked = rank_entries([{"points": 1, "rank": 7}])
        assert ranked[0]["rank"] == 1

    def test_empty(self):
        assert rank_entries([]) == []

    def test_custom_key(self):
        ranked = rank_entries([{"score": 1}, {"score": 2}], key=lambda e: e["score"])
        assert ranked[0]["score"] == 2


class TestRankHistory:
    def test_append_returns_new_list(self):
        history = [2, 1]
        updated = append_rank_history(history, 3)
        assert updated == [2, 1, 3]
        assert history == [2, 1]

    def test_append_to_missing_history(self):
        assert append_rank_history(None, 1) == [1]

    def test_unbounded_by_default(self):
        history = list(range(1, 50))
        assert len(append_rank_history(history, 1)) == 50

    def test_limit_keeps_most_recent(self):
        assert append_rank_history([5, 4, 3, 2, 1], 1, limit=5) == [4, 3, 2, 1, 1]

    def test_weeks_at_one(self):
        assert weeks_at_one([3, 1, 1, 2, 1]) == 3

    def test_weeks_at_one_empty(self):
        assert weeks_at_one([]) == 0
        assert weeks_at_one(None) == 0


class TestRankDelta:
    def test_climbed(self):
        assert rank_delta([4, 2], 2) == (2, "up")

    def test_dropped(self):
        assert rank_delta([1, 3], 3) == (-2, "down")

    def test_unchanged(self):
        assert rank_delta([2, 2], 2) == (0, "same")

    def test_short_history_uses_current_rank(self):
        assert previous_rank([3], 3) == 3
        assert rank_delta([3], 3) == (0, "same")
        assert rank_delta([], 5) == (0, "same")


class TestLeadershipTable:
    def test_only_users_who_led(self):
        users = [
            SimpleNamespace(name="a", rank_history=[2, 2]),
            SimpleNamespace(name="b", rank_history=[1, 1, 2]),
            SimpleNamespace(name="c", rank_history=[1, 3, 1, 1]),
        ]
        table = leadership_table(users)
        assert [(u.name, weeks) for u, weeks in table] == [("c", 3), ("b", 2)]

    def test_ties_keep_input_order(self):
        users = [
            SimpleNamespace(name="a", rank_history=[1]),
            SimpleNamespace(name="b", rank_history=[2, 1]),
        ]
        assert [u.name for u, _ in leadership_table(users)] == ["a", "b"]
