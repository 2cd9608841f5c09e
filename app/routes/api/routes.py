import logging
from datetime import datetime, timezone
from functools import wraps

from flask import current_app, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.models import Driver, Event, Prediction, User
from app.routes.api import bp
from app.utils.cache_utils import cached_route, invalidate_cache_pattern
from app.utils.community import consensus, participant_count, tally_event
from app.utils.ranking import leadership_table, rank_entries
from app.utils.scoring import compute_event_points, score_session

logger = logging.getLogger(__name__)


def add_security_headers(f):
    """Add no-store headers to per-user API responses"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        response = f(*args, **kwargs)
        if hasattr(response, "headers"):
            response.headers["Cache-Control"] = (
                "no-store, no-cache, must-revalidate, max-age=0"
            )
        return response

    return decorated_function


@bp.route("/health")
def health():
    """Liveness check including database connectivity"""
    try:
        db.session.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Health check database error: {e}")
        database = "unavailable"

    status_code = 200 if database == "ok" else 503
    return (
        jsonify(
            {
                "status": "ok" if status_code == 200 else "degraded",
                "database": database,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        ),
        status_code,
    )


@bp.route("/calendar")
@cached_route(timeout=300, key_prefix="calendar")
def calendar():
    """All events of the season in calendar order"""
    events = Event.query.order_by(Event.id).all()
    return {
        "season": current_app.config["SEASON_YEAR"],
        "events": [event.to_dict() for event in events],
    }


@bp.route("/events/active")
def active_event():
    """The event predictions are currently about"""
    event = Event.get_active_event()
    if not event:
        return jsonify({"error": "No events in the calendar"}), 404
    return jsonify(event.to_dict(include_schedule=True))


@bp.route("/events/<int:event_id>")
def event_detail(event_id):
    event = db.get_or_404(Event, event_id)
    return jsonify(event.to_dict(include_schedule=True))


@bp.route("/drivers")
@cached_route(timeout=3600, key_prefix="drivers")  # Cache for 1 hour
def drivers():
    drivers = Driver.query.filter_by(is_active=True).order_by(Driver.team, Driver.name).all()
    return {"drivers": [driver.to_dict() for driver in drivers]}


@bp.route("/leaderboard")
@cached_route(timeout=300, key_prefix="leaderboard")
def leaderboard():
    """Season standings as written by the last scoring pass"""
    return {"leaderboard": User.get_leaderboard()}


@bp.route("/leaderboard/events/<int:event_id>")
@cached_route(timeout=300, key_prefix="leaderboard_event")
def event_leaderboard(event_id):
    """Ranking of the points earned in a single event"""
    event = db.get_or_404(Event, event_id)

    predictions = Prediction.for_event(event.id)
    points = compute_event_points(event, predictions)

    users = []
    if points:
        users = User.query.filter(User.id.in_(list(points))).order_by(User.id).all()

    entries = [
        {"user_id": user.id, "display_name": user.full_name, "points": points[user.id]}
        for user in users
    ]

    return {
        "event": {"id": event.id, "name": event.name, "status": event.status},
        "is_scored": event.is_scored(),
        "leaderboard": rank_entries(entries),
    }


@bp.route("/stats/leadership")
@cached_route(timeout=300, key_prefix="stats_leadership")
def leadership_stats():
    """Users who have topped the table, most rounds in the lead first"""
    table = leadership_table(User.ranked_users())
    return {
        "leaders": [
            {
                "user_id": user.id,
                "display_name": user.full_name,
                "weeks_at_one": weeks,
                "rank": user.rank,
            }
            for user, weeks in table
        ]
    }


@bp.route("/stats/users/<int:user_id>")
@cached_route(timeout=300, key_prefix="stats_user")
def user_stats(user_id):
    """Standing, rank history and points per scored event for one user"""
    user = db.get_or_404(User, user_id)
    if user.is_guest:
        return {"error": "Guests are not ranked"}, 404

    predictions = Prediction.query.filter_by(user_id=user.id).all()
    events = [event for event in Event.query.order_by(Event.id).all() if event.is_scored()]

    per_event = []
    for event in events:
        event_points = compute_event_points(event, predictions).get(user.id, 0)
        per_event.append(
            {"event_id": event.id, "event_name": event.name, "points": event_points}
        )

    return {
        "user": user.to_dict(include_standing=True),
        "events": per_event,
        "predictions_made": len(predictions),
    }


@bp.route("/predictions")
@login_required
@add_security_headers
def my_predictions():
    """The logged-in user's predictions, optionally for one event"""
    query = Prediction.query.filter_by(user_id=current_user.id)

    event_id = request.args.get("event_id", type=int)
    if event_id is not None:
        query = query.filter_by(event_id=event_id)

    predictions = query.order_by(Prediction.event_id, Prediction.id).all()
    return jsonify({"predictions": [prediction.to_dict() for prediction in predictions]})


@bp.route("/predictions", methods=["POST"])
@login_required
@add_security_headers
def submit_prediction():
    """Save the top 5 for one session, replacing any earlier submission"""
    if current_user.is_guest:
        return jsonify({"error": "Guests cannot submit predictions"}), 403

    data = request.get_json(silent=True) or {}
    event_id = data.get("event_id")
    session = data.get("session")
    top5 = data.get("top5")

    if not isinstance(event_id, int) or not session:
        return jsonify({"error": "event_id and session are required"}), 400

    event = db.session.get(Event, event_id)
    if event is None:
        return jsonify({"error": "Event not found"}), 404

    prediction, message = Prediction.submit(current_user, event, session, top5)
    if prediction is None:
        return jsonify({"error": message}), 400

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to save prediction for user {current_user.id}: {e}")
        return jsonify({"error": "Could not save prediction"}), 503

    invalidate_cache_pattern(f"community_*{event.id}*")

    logger.info(
        f"Prediction saved: user={current_user.id} event={event.id} session={session}"
    )
    return jsonify({"message": message, "prediction": prediction.to_dict()})


@bp.route("/community/<int:event_id>")
@cached_route(timeout=120, key_prefix="community")
def community(event_id):
    """How many players picked each driver, per session"""
    event = db.get_or_404(Event, event_id)

    predictions = Prediction.for_event(event.id)
    total_users = participant_count(predictions)

    return {
        "event_id": event.id,
        "participants": total_users,
        "sessions": consensus(tally_event(predictions), total_users, sessions=event.sessions),
    }


@bp.route("/events/<int:event_id>/opponents")
@login_required
def opponent_predictions(event_id):
    """Other players' picks, revealed only for closed sessions"""
    event = db.get_or_404(Event, event_id)

    requested = request.args.get("session")
    if requested:
        if not event.has_session(requested):
            return jsonify({"error": f"Session {requested} does not belong to {event.name}"}), 400
        if event.is_session_open(requested):
            return (
                jsonify({"error": "Predictions are revealed once the session closes"}),
                403,
            )
        sessions = [requested]
    else:
        sessions = [s for s in event.sessions if not event.is_session_open(s)]

    official = event.results if isinstance(event.results, dict) else {}
    predictions = [
        prediction
        for prediction in Prediction.for_event(event.id)
        if prediction.session in sessions
    ]
    users = {user.id: user for user in User.ranked_users()}

    revealed = {session: [] for session in sessions}
    for prediction in predictions:
        user = users.get(prediction.user_id)
        if user is None:
            continue

        entry = {
            "user_id": user.id,
            "display_name": user.full_name,
            "top5": list(prediction.top5 or []),
        }
        if prediction.session in official:
            entry["points"] = score_session(prediction.top5, official[prediction.session])
        revealed[prediction.session].append(entry)

    return jsonify({"event_id": event.id, "sessions": revealed})
