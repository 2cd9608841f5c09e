"""
F1 Pick'em Scoring Pass Service

Runs the scoring and ranking engines over the whole store and writes every
ranked user back in a single transaction. A pass is triggered manually by an
administrator (admin API or `manage.py score run`) and can be repeated at any
time: totals are rebuilt from scratch, only the rank history grows.
"""

import logging

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.models import AdminAction, Event, Prediction, User
from app.utils.cache_utils import invalidate_league_cache
from app.utils.ranking import append_rank_history, rank_entries
from app.utils.scoring import compute_points_table

logger = logging.getLogger(__name__)


class ScoringPassError(Exception):
    """The store could not be read or written; nothing was changed"""


def _admin_id(admin_user):
    return admin_user.id if admin_user is not None else None


def _broadcast(leaderboard, event_id=None):
    # Lazy import to avoid circular imports
    from app.socketio_handlers import broadcast_leaderboard_update

    broadcast_leaderboard_update(leaderboard, event_id=event_id)


def run_scoring_pass(event_id=None, admin_user=None):
    """
    Recompute every ranked user's points, rank and rank history.

    Args:
        event_id: Event whose results triggered the pass (marked FINISHED)
        admin_user: Administrator running the pass (None from the CLI)

    Returns:
        The new leaderboard as a list of user dicts, best first

    Raises:
        ScoringPassError: if the database fails; the transaction is rolled back
    """
    history_limit = current_app.config.get("RANK_HISTORY_LIMIT")

    try:
        events = Event.query.order_by(Event.id).all()
        users = User.ranked_users()
        user_ids = [user.id for user in users]

        predictions = []
        if user_ids:
            predictions = Prediction.query.filter(
                Prediction.user_id.in_(user_ids)
            ).all()

        points_table = compute_points_table(events, predictions, user_ids)
        ranked = rank_entries(
            [{"user": user, "points": points_table[user.id]} for user in users]
        )

        for entry in ranked:
            user = entry["user"]
            user.previous_rank = user.rank or None
            user.points = entry["points"]
            user.rank = entry["rank"]
            user.rank_history = append_rank_history(
                user.rank_history, entry["rank"], limit=history_limit
            )

        event = None
        if event_id is not None:
            event = db.session.get(Event, event_id)
            if event is not None:
                event.status = Event.STATUS_FINISHED
            else:
                logger.warning(f"Scoring pass triggered for unknown event {event_id}")

        leader = ranked[0]["user"].username if ranked else None
        AdminAction.log_action(
            admin_user_id=_admin_id(admin_user),
            action_type="scoring_pass",
            description=(
                f"Scoring pass after {event.name}" if event else "Scoring pass"
            ),
            event_id=event.id if event else None,
            action_metadata={
                "users_ranked": len(ranked),
                "predictions_scored": len(predictions),
                "leader": leader,
            },
        )

        db.session.commit()

    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Scoring pass failed, changes rolled back: {e}")
        raise ScoringPassError("Could not update the league standings") from e

    logger.info(
        f"Scoring pass complete: {len(ranked)} users ranked, "
        f"{len(predictions)} predictions scored, leader: {leader}"
    )

    leaderboard = User.get_leaderboard()
    invalidate_league_cache()
    _broadcast(leaderboard, event_id=event.id if event else None)

    return leaderboard


def reset_season(admin_user=None):
    """
    Delete every prediction and clear every user's standing.

    Returns:
        Number of predictions deleted
    """
    try:
        deleted = Prediction.query.delete(synchronize_session=False)

        for user in User.query.all():
            user.points = 0
            user.rank = 0
            user.previous_rank = None
            user.rank_history = []

        AdminAction.log_action(
            admin_user_id=_admin_id(admin_user),
            action_type="reset_season",
            description="Season reset: predictions and points cleared",
            action_metadata={"predictions_deleted": deleted},
        )

        db.session.commit()

    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Season reset failed, changes rolled back: {e}")
        raise ScoringPassError("Could not reset the season") from e

    logger.info(f"Season reset: {deleted} predictions deleted")

    invalidate_league_cache()
    _broadcast(User.get_leaderboard())

    return deleted


def delete_user(user, admin_user=None):
    """
    Remove a user and all of their predictions.

    The remaining users keep their points until the next scoring pass; their
    ranks are renumbered without gaps.

    Returns:
        Number of predictions deleted
    """
    username = user.username

    try:
        predictions_deleted = user.predictions.count()
        AdminAction.log_user_deletion(admin_user, user, predictions_deleted)

        # Predictions go with the user (cascade on the relationship)
        db.session.delete(user)
        db.session.flush()
        User.close_rank_gaps()
        db.session.commit()

    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to delete user {username}: {e}")
        raise ScoringPassError(f"Could not delete user {username}") from e

    logger.info(f"Deleted user {username} ({predictions_deleted} predictions)")

    invalidate_league_cache()

    return predictions_deleted
