"""
Ranking Engine for F1 Pick'em Application

Orders users by points and keeps the rank history used for the
"rounds in the lead" statistic and the rank movement indicator.
"""


def _entry_points(entry):
    return entry.get("points") or 0


def rank_entries(entries, key=None):
    """
    Sort entries by points (descending) and assign dense 1-based ranks.

    Ties keep the order the entries were given in. No secondary key is used.

    Args:
        entries: List of dicts with at least a "points" key
        key: Optional callable returning the points for an entry

    Returns:
        New list of the same dicts, sorted, each with "rank" set
    """
    # sorted() is stable, so equal points keep their input order
    ranked = sorted(entries, key=key or _entry_points, reverse=True)
    for position, entry in enumerate(ranked, start=1):
        entry["rank"] = position
    return ranked


def append_rank_history(history, rank, limit=None):
    """
    Return a new history list with rank appended.

    Args:
        history: Existing history (may be None)
        rank: Rank from the pass that just completed
        limit: Keep only the most recent `limit` entries (None = unbounded)
    """
    new_history = list(history or [])
    new_history.append(rank)
    if limit:
        new_history = new_history[-limit:]
    return new_history


def weeks_at_one(history):
    """Number of scoring passes in which the user was ranked first"""
    return sum(1 for rank in history or [] if rank == 1)


def previous_rank(history, current_rank):
    """Rank before the latest pass, falling back to the current rank"""
    if history and len(history) >= 2:
        return history[-2]
    return current_rank


def rank_delta(history, current_rank):
    """
    Movement since the previous scoring pass.

    Returns:
        Tuple of (delta, direction). A positive delta means the user
        climbed; direction is "up", "down" or "same".
    """
    delta = previous_rank(history, current_rank) - current_rank

    if delta > 0:
        return delta, "up"
    if delta < 0:
        return delta, "down"
    return 0, "same"


def leadership_table(users):
    """
    Users who have led at least once, most rounds in the lead first.

    Args:
        users: Objects with a rank_history attribute

    Returns:
        List of (user, weeks_at_one) tuples
    """
    table = [(user, weeks_at_one(user.rank_history)) for user in users]
    table = [row for row in table if row[1] > 0]
    table.sort(key=lambda row: row[1], reverse=True)
    return table
