"""
SocketIO Event Handlers for Real-time Updates

Clients on the /league namespace receive the leaderboard whenever an
administrator runs a scoring pass, and can follow a single event's
session open/closed changes.
"""

import logging
from datetime import datetime, timezone

from flask import request
from flask_login import current_user
from flask_socketio import emit, join_room, leave_room

from app import db, socketio

logger = logging.getLogger(__name__)

LEAGUE_NAMESPACE = "/league"

# Track connected clients and their subscriptions
connected_users = {}


@socketio.on("connect", namespace=LEAGUE_NAMESPACE)
def on_connect():
    """Handle client connection to the league namespace"""
    from app.models import User

    try:
        user_id = current_user.id if current_user.is_authenticated else None
        client_id = request.sid

        logger.info(f"Client connected to {LEAGUE_NAMESPACE}: {client_id} (user: {user_id})")

        connected_users[client_id] = {"user_id": user_id, "subscriptions": set()}

        # Send the current standings so the client starts in sync
        emit("leaderboard_data", {"leaderboard": User.get_leaderboard()})

    except Exception as e:
        logger.error(f"Error in league connect: {e}")


@socketio.on("disconnect", namespace=LEAGUE_NAMESPACE)
def on_disconnect():
    """Handle client disconnection from the league namespace"""
    try:
        client_id = request.sid
        if client_id in connected_users:
            user_id = connected_users[client_id]["user_id"]
            logger.info(
                f"Client disconnected from {LEAGUE_NAMESPACE}: {client_id} (user: {user_id})"
            )
            del connected_users[client_id]
    except Exception as e:
        logger.error(f"Error in league disconnect: {e}")


@socketio.on("subscribe_event", namespace=LEAGUE_NAMESPACE)
def on_subscribe_event(data):
    """Subscribe to updates for a specific event"""
    from app.models import Event

    try:
        client_id = request.sid
        event_id = (data or {}).get("event_id")

        if client_id in connected_users and event_id:
            room_name = f"event_{event_id}"

            # Skip if already subscribed (avoid duplicate joins/emits)
            if room_name in connected_users[client_id]["subscriptions"]:
                return

            connected_users[client_id]["subscriptions"].add(room_name)
            join_room(room_name)

            event = db.session.get(Event, event_id)
            if event:
                emit("event_update", event.to_dict())

            logger.debug(f"Client {client_id} subscribed to event {event_id}")
    except Exception as e:
        logger.error(f"Error in subscribe_event: {e}")


@socketio.on("unsubscribe_event", namespace=LEAGUE_NAMESPACE)
def on_unsubscribe_event(data):
    """Unsubscribe from updates for a specific event"""
    try:
        client_id = request.sid
        event_id = (data or {}).get("event_id")

        if client_id in connected_users and event_id:
            connected_users[client_id]["subscriptions"].discard(f"event_{event_id}")
            leave_room(f"event_{event_id}")

            logger.debug(f"Client {client_id} unsubscribed from event {event_id}")
    except Exception as e:
        logger.error(f"Error in unsubscribe_event: {e}")


# Broadcast functions (called after admin changes are committed)
def broadcast_leaderboard_update(leaderboard, event_id=None):
    """Broadcast the new standings to every connected client"""
    try:
        socketio.emit(
            "leaderboard_update",
            {
                "leaderboard": leaderboard,
                "event_id": event_id,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            namespace=LEAGUE_NAMESPACE,
        )

        logger.debug(f"Broadcasted leaderboard update ({len(leaderboard)} users)")

    except Exception as e:
        logger.error(f"Error broadcasting leaderboard update: {e}")


def broadcast_event_update(event):
    """Broadcast session open/closed or result changes for one event"""
    try:
        socketio.emit(
            "event_update",
            event.to_dict(),
            room=f"event_{event.id}",
            namespace=LEAGUE_NAMESPACE,
        )

        logger.debug(f"Broadcasted event update for event {event.id}")

    except Exception as e:
        logger.error(f"Error broadcasting event update: {e}")


def get_connection_stats():
    """Get detailed connection statistics"""
    return {
        "total_connections": len(connected_users),
        "authenticated_users": len(
            [u for u in connected_users.values() if u["user_id"]]
        ),
        "anonymous_users": len(
            [u for u in connected_users.values() if not u["user_id"]]
        ),
    }
