"""
Scoring Engine for F1 Pick'em Application

This module turns official session results and user predictions into points.
Totals are always rebuilt from the whole calendar, never accumulated, so a
scoring pass can be re-run at any time and gives the same answer.

For ranking and rank history, see app/utils/ranking.py.
"""

SESSION_QUALIFYING_SPRINT = "QualifyingSprint"
SESSION_RACE_SPRINT = "RaceSprint"
SESSION_QUALIFYING_MAIN = "QualifyingMain"
SESSION_RACE_MAIN = "RaceMain"

MAIN_SESSIONS = (SESSION_QUALIFYING_MAIN, SESSION_RACE_MAIN)
SPRINT_SESSIONS = (SESSION_QUALIFYING_SPRINT, SESSION_RACE_SPRINT) + MAIN_SESSIONS

SESSION_LABELS = {
    SESSION_QUALIFYING_SPRINT: "Qualy Sprint",
    SESSION_RACE_SPRINT: "Corrida Sprint",
    SESSION_QUALIFYING_MAIN: "Qualy Corrida",
    SESSION_RACE_MAIN: "Corrida Principal",
}

PICKS_PER_SESSION = 5
EXACT_MATCH_POINTS = 5
PARTIAL_MATCH_POINTS = 1


def sessions_for(is_sprint):
    """Ordered session tags for an event (sprint sessions come first)"""
    return list(SPRINT_SESSIONS if is_sprint else MAIN_SESSIONS)


def _normalize_top5(entries):
    """
    Return exactly five slots, with empty or missing entries as None.

    Anything that is not a list or tuple is treated as five empty slots.
    """
    if not isinstance(entries, (list, tuple)):
        return [None] * PICKS_PER_SESSION

    slots = []
    for entry in list(entries)[:PICKS_PER_SESSION]:
        slots.append(entry if entry else None)

    while len(slots) < PICKS_PER_SESSION:
        slots.append(None)

    return slots


def score_slot(picked, idx, official):
    """
    Score a single pick position.

    Returns:
        5 when the pick sits at the same position in the official result
        1 when the pick is elsewhere in the official top 5
        0 otherwise (including empty picks)

    Args:
        picked: Candidate id picked at this position (may be None or "")
        idx: Zero-based position of the pick
        official: Official top-5 list for the session
    """
    if not picked:
        return 0

    slots = _normalize_top5(official)

    if slots[idx] is not None and picked == slots[idx]:
        return EXACT_MATCH_POINTS

    if picked in [entry for entry in slots if entry is not None]:
        return PARTIAL_MATCH_POINTS

    return 0


def score_session(top5, official):
    """Points for one prediction against one official result (0-25)"""
    picks = _normalize_top5(top5)
    return sum(score_slot(picked, idx, official) for idx, picked in enumerate(picks))


def index_predictions(predictions):
    """Map (user_id, event_id, session) to the prediction's top-5 list"""
    index = {}
    for prediction in predictions:
        key = (prediction.user_id, prediction.event_id, prediction.session)
        index[key] = prediction.top5
    return index


def _scored_sessions(event):
    results = event.results
    if not isinstance(results, dict):
        return []
    return list(results.items())


def compute_user_points(user_id, events, predictions):
    """
    Recompute one user's cumulative total over every event in the calendar.

    Args:
        user_id: User to score
        events: Every event in the calendar (objects with id and results)
        predictions: Prediction records (user_id, event_id, session, top5)

    Returns:
        Total points as a non-negative integer
    """
    index = predictions if isinstance(predictions, dict) else index_predictions(predictions)

    total = 0
    for event in events:
        for session, official in _scored_sessions(event):
            top5 = index.get((user_id, event.id, session))
            if top5 is None:
                continue
            total += score_session(top5, official)

    return total


def compute_points_table(events, predictions, user_ids):
    """
    Recompute the totals for every user in a single pass.

    Every id in user_ids appears in the result, with 0 when nothing scored.
    Predictions from users not listed are ignored.
    """
    events = list(events)
    index = index_predictions(predictions)
    return {
        user_id: compute_user_points(user_id, events, index) for user_id in user_ids
    }


def compute_event_points(event, predictions):
    """
    Points earned per user in a single event.

    Only users with at least one prediction for the event are included.
    """
    official_by_session = dict(_scored_sessions(event))

    points = {}
    for prediction in predictions:
        if prediction.event_id != event.id:
            continue

        points.setdefault(prediction.user_id, 0)
        official = official_by_session.get(prediction.session)
        if official is None:
            continue
        points[prediction.user_id] += score_session(prediction.top5, official)

    return points
