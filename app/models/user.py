from datetime import datetime, timezone

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from app import db
from app.utils.ranking import rank_delta, weeks_at_one


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=True, index=True)
    password_hash = db.Column(db.String(255), nullable=True)  # Guests have none

    # Profile information
    display_name = db.Column(db.String(100))

    # Account status
    is_active = db.Column(db.Boolean, default=True)
    is_admin = db.Column(db.Boolean, default=False)  # League administrator
    is_guest = db.Column(db.Boolean, default=False)  # Browses only, never ranked

    # League standing (written only by the scoring pass)
    points = db.Column(db.Integer, default=0, nullable=False)
    rank = db.Column(db.Integer, default=0, nullable=False)
    previous_rank = db.Column(db.Integer, nullable=True)
    rank_history = db.Column(db.JSON, default=list)  # One rank per completed pass

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    last_login = db.Column(db.DateTime)

    # Relationships
    predictions = db.relationship(
        "Prediction", backref="user", lazy="dynamic", cascade="all, delete-orphan"
    )

    # Database indexes and constraints
    __table_args__ = (
        db.Index("idx_user_points", "points"),
        db.Index("idx_user_guest", "is_guest"),
    )

    def __repr__(self):
        return f"<User {self.username}>"

    def set_password(self, password):
        """Set password hash"""
        self.password_hash = generate_password_hash(password)

    def set_display_name(self, display_name):
        """Set display name with sanitization"""
        import html

        if display_name:
            self.display_name = html.escape(display_name.strip())
        else:
            self.display_name = display_name

    def check_password(self, password):
        """Check password against hash"""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def full_name(self):
        """Return display name or username"""
        return self.display_name or self.username

    def update_last_login(self):
        """Update last login timestamp"""
        self.last_login = datetime.now(timezone.utc)

    @property
    def weeks_at_one(self):
        """Scoring passes this user finished in first place"""
        return weeks_at_one(self.rank_history)

    @property
    def rank_movement(self):
        """(delta, direction) since the previous scoring pass"""
        return rank_delta(self.rank_history, self.rank)

    @staticmethod
    def ranked_users():
        """Users that take part in the ranking, in registration order"""
        return User.query.filter_by(is_guest=False).order_by(User.id).all()

    @staticmethod
    def next_rank():
        """Rank for a newly registered user (placed last)"""
        return User.query.filter_by(is_guest=False).count() + 1

    @staticmethod
    def close_rank_gaps():
        """Renumber stored ranks 1..n in their current order (history untouched)"""
        users = (
            User.query.filter(User.is_guest.is_(False), User.rank > 0)
            .order_by(User.rank, User.id)
            .all()
        )
        for position, user in enumerate(users, start=1):
            user.rank = position

    @staticmethod
    def get_leaderboard():
        """Ranked users ordered by their stored rank"""
        users = User.query.filter_by(is_guest=False).order_by(User.rank, User.id).all()
        return [user.to_dict(include_standing=True) for user in users]

    def to_dict(self, include_standing=False):
        """Convert user to dictionary for API responses"""
        data = {
            "id": self.id,
            "username": self.username,
            "display_name": self.full_name,
            "is_admin": self.is_admin,
            "is_guest": self.is_guest,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

        if include_standing:
            delta, direction = self.rank_movement
            data.update(
                {
                    "points": self.points,
                    "rank": self.rank,
                    "previous_rank": self.previous_rank,
                    "rank_history": list(self.rank_history or []),
                    "rank_delta": delta,
                    "rank_direction": direction,
                    "weeks_at_one": self.weeks_at_one,
                }
            )

        return data
