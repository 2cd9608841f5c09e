import logging
from functools import wraps

from flask import jsonify, request
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.models import AdminAction, Driver, Event, User
from app.routes.admin import bp
from app.services.scoring_service import (
    ScoringPassError,
    delete_user,
    reset_season,
    run_scoring_pass,
)
from app.utils.cache_utils import get_cache_stats, invalidate_league_cache

logger = logging.getLogger(__name__)


def admin_required(f):
    """Reject anyone who is not a league administrator"""

    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if not current_user.is_admin:
            logger.warning(f"Non-admin user {current_user.id} tried {request.path}")
            return jsonify({"error": "Access denied"}), 403
        return f(*args, **kwargs)

    return decorated_function


def _commit_event_change(event, action_type, description, metadata=None):
    """Log and commit an admin edit to an event, then notify clients"""
    AdminAction.log_action(
        admin_user_id=current_user.id,
        action_type=action_type,
        description=description,
        event_id=event.id,
        action_metadata=metadata,
    )
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to save {action_type} for event {event.id}: {e}")
        return jsonify({"error": "Could not save changes"}), 503

    invalidate_league_cache()

    # Lazy import to avoid circular imports
    from app.socketio_handlers import broadcast_event_update

    broadcast_event_update(event)
    return jsonify({"message": description, "event": event.to_dict()})


def _unknown_drivers(driver_ids):
    known = Driver.known_ids()
    return [driver_id for driver_id in driver_ids if driver_id and driver_id not in known]


@bp.route("/events/<int:event_id>/activate", methods=["POST"])
@admin_required
def activate_event(event_id):
    event = db.get_or_404(Event, event_id)
    _, message = event.activate()
    return _commit_event_change(event, "activate_event", message)


@bp.route("/events/<int:event_id>/sessions/<session>/toggle", methods=["POST"])
@admin_required
def toggle_session(event_id, session):
    event = db.get_or_404(Event, event_id)

    success, message = event.toggle_session(session)
    if not success:
        return jsonify({"error": message}), 400

    return _commit_event_change(
        event,
        "toggle_session",
        message,
        {"session": session, "is_open": event.is_session_open(session)},
    )


@bp.route("/events/<int:event_id>/results/<session>/<int:position>", methods=["PUT"])
@admin_required
def set_result_slot(event_id, session, position):
    """Set one position of the official top 5 (position is 0-based)"""
    event = db.get_or_404(Event, event_id)

    data = request.get_json(silent=True) or {}
    driver_id = data.get("driver_id") or ""

    if _unknown_drivers([driver_id]):
        return jsonify({"error": f"Unknown driver: {driver_id}"}), 400

    success, message = event.set_result_slot(session, position, driver_id)
    if not success:
        return jsonify({"error": message}), 400

    return _commit_event_change(
        event,
        "set_result",
        message,
        {"session": session, "position": position, "driver_id": driver_id},
    )


@bp.route("/events/<int:event_id>/results/<session>", methods=["PUT"])
@admin_required
def set_results(event_id, session):
    """Replace the whole official top 5 of a session"""
    event = db.get_or_404(Event, event_id)

    data = request.get_json(silent=True) or {}
    top5 = data.get("top5")

    if isinstance(top5, list):
        unknown = _unknown_drivers(top5)
        if unknown:
            return jsonify({"error": f"Unknown driver: {', '.join(unknown)}"}), 400

        filled = [driver_id for driver_id in top5 if driver_id]
        if len(filled) != len(set(filled)):
            return jsonify({"error": "A driver can only appear once in the result"}), 400

    success, message = event.set_results(session, top5)
    if not success:
        return jsonify({"error": message}), 400

    return _commit_event_change(
        event, "set_result", message, {"session": session, "result": event.results[session]}
    )


@bp.route("/events/<int:event_id>/results/<session>", methods=["DELETE"])
@admin_required
def clear_results(event_id, session):
    event = db.get_or_404(Event, event_id)

    success, message = event.clear_results(session)
    if not success:
        return jsonify({"error": message}), 400

    return _commit_event_change(event, "clear_result", message, {"session": session})


@bp.route("/score", methods=["POST"])
@admin_required
def score():
    """Run a scoring pass over the whole calendar"""
    data = request.get_json(silent=True) or {}
    event_id = data.get("event_id")

    if event_id is not None:
        event = db.session.get(Event, event_id)
        if event is None:
            return jsonify({"error": "Event not found"}), 404
        if not event.is_scored():
            return jsonify({"error": f"No official results recorded for {event.name}"}), 400

    try:
        leaderboard = run_scoring_pass(event_id=event_id, admin_user=current_user)
    except ScoringPassError as e:
        return jsonify({"error": str(e)}), 503

    return jsonify({"message": "Scoring pass complete", "leaderboard": leaderboard})


@bp.route("/reset", methods=["POST"])
@admin_required
def reset():
    """Delete every prediction and zero every standing"""
    data = request.get_json(silent=True) or {}
    if data.get("confirm") is not True:
        return jsonify({"error": "Send {\"confirm\": true} to reset the season"}), 400

    try:
        deleted = reset_season(admin_user=current_user)
    except ScoringPassError as e:
        return jsonify({"error": str(e)}), 503

    return jsonify({"message": "Season reset", "predictions_deleted": deleted})


@bp.route("/users")
@admin_required
def users():
    users = User.query.order_by(User.id).all()
    return jsonify(
        {"users": [user.to_dict(include_standing=not user.is_guest) for user in users]}
    )


@bp.route("/users/<int:user_id>", methods=["DELETE"])
@admin_required
def remove_user(user_id):
    user = db.get_or_404(User, user_id)

    if user.id == current_user.id:
        return jsonify({"error": "You cannot delete your own account"}), 400

    try:
        deleted = delete_user(user, admin_user=current_user)
    except ScoringPassError as e:
        return jsonify({"error": str(e)}), 503

    return jsonify({"message": "User deleted", "predictions_deleted": deleted})


@bp.route("/actions")
@admin_required
def actions():
    """Most recent admin actions, newest first"""
    limit = min(request.args.get("limit", 50, type=int), 500)
    return jsonify({"actions": [action.to_dict() for action in AdminAction.recent(limit)]})


@bp.route("/status")
@admin_required
def status():
    """Live connections and cache backend"""
    # Lazy import to avoid circular imports
    from app.socketio_handlers import get_connection_stats

    return jsonify({"connections": get_connection_stats(), "cache": get_cache_stats()})
