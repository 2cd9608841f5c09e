from datetime import datetime, timezone

from app import db
from app.utils.scoring import PICKS_PER_SESSION, SESSION_LABELS


class Prediction(db.Model):
    __tablename__ = "predictions"

    id = db.Column(db.Integer, primary_key=True)

    # Prediction identification
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=False)
    session = db.Column(db.String(32), nullable=False)

    # Ordered driver ids, P1 first (0-5 entries)
    top5 = db.Column(db.JSON, nullable=False, default=list)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Constraints and indexes
    __table_args__ = (
        db.UniqueConstraint(
            "user_id", "event_id", "session", name="unique_user_event_session"
        ),
        db.Index("idx_prediction_event_session", "event_id", "session"),
        db.Index("idx_prediction_user", "user_id"),
    )

    def __repr__(self):
        return f"<Prediction user_id={self.user_id} event_id={self.event_id} session={self.session}>"

    @staticmethod
    def validate_picks(top5, known_driver_ids):
        """Check a submitted top 5 (returns ok, message)"""
        if not isinstance(top5, (list, tuple)):
            return False, "Picks must be a list of driver ids"

        if len(top5) > PICKS_PER_SESSION:
            return False, f"At most {PICKS_PER_SESSION} drivers can be picked"

        picks = [pick for pick in top5 if pick]
        if len(picks) != len(set(picks)):
            return False, "A driver can only be picked once per session"

        unknown = [pick for pick in picks if pick not in known_driver_ids]
        if unknown:
            return False, f"Unknown driver: {', '.join(unknown)}"

        return True, "OK"

    @staticmethod
    def submit(user, event, session, top5):
        """Create or overwrite a user's prediction for one session"""
        from .driver import Driver

        if event is None:
            return None, "Event not found"

        if not event.has_session(session):
            return None, f"Session {session} does not belong to {event.name}"

        if not event.is_session_open(session):
            return None, f"{SESSION_LABELS[session]} is closed for predictions"

        is_valid, message = Prediction.validate_picks(top5, Driver.known_ids())
        if not is_valid:
            return None, message

        picks = [pick or "" for pick in top5]

        prediction = Prediction.query.filter_by(
            user_id=user.id, event_id=event.id, session=session
        ).first()

        if prediction:
            prediction.top5 = picks
            return prediction, "Prediction updated successfully"

        prediction = Prediction(
            user_id=user.id, event_id=event.id, session=session, top5=picks
        )
        db.session.add(prediction)
        return prediction, "Prediction saved successfully"

    @staticmethod
    def for_event(event_id, ranked_only=True):
        """Predictions for one event, optionally only from ranked (non-guest) users"""
        from .user import User

        query = Prediction.query.filter_by(event_id=event_id)
        if ranked_only:
            query = query.join(User).filter(User.is_guest.is_(False))
        return query.all()

    def to_dict(self):
        """Convert prediction to dictionary for API responses"""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "event_id": self.event_id,
            "session": self.session,
            "session_label": SESSION_LABELS.get(self.session, self.session),
            "top5": list(self.top5 or []),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
