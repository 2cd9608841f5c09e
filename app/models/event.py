from datetime import datetime, timedelta, timezone

from app import db
from app.utils.scoring import PICKS_PER_SESSION, SESSION_LABELS, sessions_for


class Event(db.Model):
    __tablename__ = "events"

    STATUS_UPCOMING = "UPCOMING"
    STATUS_OPEN = "OPEN"
    STATUS_CLOSED = "CLOSED"
    STATUS_FINISHED = "FINISHED"
    STATUSES = (STATUS_UPCOMING, STATUS_OPEN, STATUS_CLOSED, STATUS_FINISHED)

    # Calendar order is the id order, so ids are assigned explicitly
    id = db.Column(db.Integer, primary_key=True, autoincrement=False)

    # Event identification
    name = db.Column(db.String(100), nullable=False)
    location = db.Column(db.String(100))
    date_label = db.Column(db.String(50))  # e.g. "05-08 Mar"
    is_sprint = db.Column(db.Boolean, default=False, nullable=False)

    status = db.Column(db.String(20), default=STATUS_UPCOMING, nullable=False)

    # Session tag -> open flag (absent key means open)
    session_status = db.Column(db.JSON, default=dict)
    # Session tag -> official top-5 driver ids (absent key means not scored yet)
    results = db.Column(db.JSON, nullable=True)
    # Schedule label ("TL1", "Corrida", ...) -> ISO datetime string
    session_times = db.Column(db.JSON, nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    predictions = db.relationship(
        "Prediction", backref="event", lazy="dynamic", cascade="all, delete-orphan"
    )

    __table_args__ = (db.Index("idx_event_status", "status"),)

    def __repr__(self):
        return f"<Event {self.id} {self.name}>"

    @property
    def sessions(self):
        """Ordered session tags for this event"""
        return sessions_for(self.is_sprint)

    def has_session(self, session):
        return session in self.sessions

    def is_session_open(self, session):
        """Sessions are open unless explicitly closed"""
        return (self.session_status or {}).get(session, True)

    def is_scored(self, session=None):
        """Whether official results exist (for one session, or for any)"""
        results = self.results if isinstance(self.results, dict) else {}
        if session is None:
            return bool(results)
        return session in results

    def toggle_session(self, session):
        """Flip a session between open and closed"""
        if not self.has_session(session):
            return False, f"Session {session} does not belong to {self.name}"

        status = dict(self.session_status or {})
        status[session] = not self.is_session_open(session)
        # Reassign so the JSON column is flagged as modified
        self.session_status = status

        state = "opened" if status[session] else "closed"
        return True, f"{SESSION_LABELS[session]} {state} for {self.name}"

    def set_result_slot(self, session, position, driver_id):
        """Set one position (0-4) of the official result for a session"""
        if not self.has_session(session):
            return False, f"Session {session} does not belong to {self.name}"

        if not isinstance(position, int) or not 0 <= position < PICKS_PER_SESSION:
            return False, f"Position must be between 0 and {PICKS_PER_SESSION - 1}"

        results = dict(self.results or {})
        slots = list(results.get(session) or [])[:PICKS_PER_SESSION]
        slots += [""] * (PICKS_PER_SESSION - len(slots))
        slots[position] = driver_id or ""

        results[session] = slots
        self.results = results
        return True, f"P{position + 1} of {SESSION_LABELS[session]} set"

    def set_results(self, session, top5):
        """Replace the whole official result for a session"""
        if not self.has_session(session):
            return False, f"Session {session} does not belong to {self.name}"

        if not isinstance(top5, (list, tuple)):
            return False, "Results must be a list of driver ids"

        if len(top5) > PICKS_PER_SESSION:
            return False, f"At most {PICKS_PER_SESSION} positions can be set"

        slots = [driver_id or "" for driver_id in top5]
        slots += [""] * (PICKS_PER_SESSION - len(slots))

        results = dict(self.results or {})
        results[session] = slots
        self.results = results
        return True, f"Results for {SESSION_LABELS[session]} saved"

    def clear_results(self, session):
        """Remove the official result so the session counts as unscored"""
        results = dict(self.results or {})
        if results.pop(session, None) is None:
            return False, f"No results recorded for {session}"

        self.results = results or None
        return True, f"Results for {SESSION_LABELS.get(session, session)} cleared"

    def activate(self):
        """
        Make this the open event of the calendar.

        Earlier events are marked finished and later ones upcoming.
        """
        for event in Event.query.order_by(Event.id).all():
            if event.id < self.id:
                event.status = Event.STATUS_FINISHED
            elif event.id > self.id:
                event.status = Event.STATUS_UPCOMING
        self.status = Event.STATUS_OPEN
        return True, f"{self.name} is now the active event"

    def last_session_time(self):
        """Latest scheduled session as an aware datetime, or None"""
        times = []
        for value in (self.session_times or {}).values():
            try:
                parsed = datetime.fromisoformat(value)
            except (TypeError, ValueError):
                continue
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            times.append(parsed)
        return max(times) if times else None

    def schedule(self):
        """Scheduled sessions in the league timezone, earliest first"""
        # Lazy import to avoid circular imports
        from app.utils.timezone_utils import format_session_time

        entries = []
        for label, value in (self.session_times or {}).items():
            try:
                starts_at = datetime.fromisoformat(value)
            except (TypeError, ValueError):
                continue
            entries.append((starts_at, label))

        entries.sort(key=lambda entry: entry[0])
        return [
            {"label": label, "starts_at": format_session_time(starts_at)}
            for starts_at, label in entries
        ]

    @staticmethod
    def get_active_event(now=None):
        """
        The event the league is currently about.

        An event opened by an administrator wins. Otherwise the first event
        whose last session ended less than a day ago (or is still ahead),
        falling back to the last event of the calendar.
        """
        events = Event.query.order_by(Event.id).all()
        if not events:
            return None

        for event in events:
            if event.status == Event.STATUS_OPEN:
                return event

        # Lazy import to avoid circular imports
        from app.utils.timezone_utils import get_current_time

        now = now or get_current_time()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        for event in events:
            last_session = event.last_session_time()
            if last_session and last_session + timedelta(days=1) > now:
                return event

        return events[-1]

    def to_dict(self, include_schedule=False):
        """Convert event to dictionary for API responses"""
        data = {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "date": self.date_label,
            "is_sprint": self.is_sprint,
            "status": self.status,
            "sessions": [
                {
                    "session": session,
                    "label": SESSION_LABELS[session],
                    "is_open": self.is_session_open(session),
                    "is_scored": self.is_scored(session),
                }
                for session in self.sessions
            ],
            "results": self.results or {},
        }
        if include_schedule:
            data["schedule"] = self.schedule()
        return data
