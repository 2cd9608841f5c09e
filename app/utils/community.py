"""
Community consensus ("palpitometro") for F1 Pick'em Application

Counts how many users picked each driver in each session, regardless of the
position they put the driver in.
"""

import math


def tally_event(predictions):
    """
    Tally picks for one event's predictions.

    A driver repeated inside one prediction is only counted once for that user.

    Returns:
        Dict of session -> driver id -> number of users
    """
    tally = {}
    for prediction in predictions:
        picks = prediction.top5 if isinstance(prediction.top5, (list, tuple)) else []
        session_tally = tally.setdefault(prediction.session, {})
        for driver_id in set(pick for pick in picks if pick):
            session_tally[driver_id] = session_tally.get(driver_id, 0) + 1

    # Sessions where every prediction was empty carry no information
    return {session: counts for session, counts in tally.items() if counts}


def tally_by_event(predictions):
    """Dict of event id -> session -> driver id -> number of users"""
    by_event = {}
    for prediction in predictions:
        by_event.setdefault(prediction.event_id, []).append(prediction)

    stats = {}
    for event_id, event_predictions in by_event.items():
        event_tally = tally_event(event_predictions)
        if event_tally:
            stats[event_id] = event_tally
    return stats


def participant_count(predictions):
    """Distinct users with at least one prediction in the given set"""
    return len({prediction.user_id for prediction in predictions})


def consensus_percent(votes, total_users):
    """Share of participants picking a driver, rounded half up and capped at 100"""
    if not total_users:
        return 0
    return min(100, math.floor(votes * 100 / total_users + 0.5))


def consensus(tally, total_users, sessions=None):
    """
    Build the consensus view for display.

    Args:
        tally: Output of tally_event()
        total_users: Distinct participants for the event
        sessions: Optional session order; defaults to the tally's own order

    Returns:
        Dict of session -> list of {"driver_id", "votes", "percent"},
        most voted first
    """
    view = {}
    for session in sessions or list(tally):
        counts = tally.get(session)
        if not counts:
            continue

        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        view[session] = [
            {
                "driver_id": driver_id,
                "votes": votes,
                "percent": consensus_percent(votes, total_users),
            }
            for driver_id, votes in ranked
        ]
    return view
