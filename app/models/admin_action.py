from datetime import datetime, timezone

from app import db


class AdminAction(db.Model):
    __tablename__ = "admin_actions"

    id = db.Column(db.Integer, primary_key=True)

    # Action details
    admin_user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )  # None when run from the CLI
    target_user_id = db.Column(db.Integer, nullable=True)  # User being acted upon
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=True)

    # Action type and details
    action_type = db.Column(
        db.String(50), nullable=False
    )  # 'scoring_pass', 'reset_season', 'toggle_session', 'set_result', etc.
    action_description = db.Column(db.String(500), nullable=False)

    # Additional context data (JSON)
    action_metadata = db.Column(db.JSON, nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    admin_user = db.relationship(
        "User", foreign_keys=[admin_user_id], backref="admin_actions_performed"
    )
    event = db.relationship("Event", backref="admin_actions")

    # Indexes
    __table_args__ = (
        db.Index("idx_admin_action_event", "event_id"),
        db.Index("idx_admin_action_admin", "admin_user_id"),
        db.Index("idx_admin_action_type", "action_type"),
        db.Index("idx_admin_action_created", "created_at"),
    )

    def __repr__(self):
        return f'<AdminAction {self.action_type} by {self.admin_user.username if self.admin_user else "CLI"}>'

    @staticmethod
    def log_action(
        admin_user_id,
        action_type,
        description,
        event_id=None,
        target_user_id=None,
        action_metadata=None,
    ):
        """Log an admin action (added to the current session, not committed)"""
        action = AdminAction(
            admin_user_id=admin_user_id,
            target_user_id=target_user_id,
            event_id=event_id,
            action_type=action_type,
            action_description=description,
            action_metadata=action_metadata or {},
        )

        db.session.add(action)
        return action

    @staticmethod
    def log_user_deletion(admin_user, target_user, predictions_deleted):
        """Convenience method for logging user removal"""
        return AdminAction.log_action(
            admin_user_id=admin_user.id if admin_user else None,
            action_type="delete_user",
            description=f"Deleted user {target_user.username}",
            target_user_id=target_user.id,
            action_metadata={"predictions_deleted": predictions_deleted},
        )

    @staticmethod
    def recent(limit=50):
        return (
            AdminAction.query.order_by(AdminAction.created_at.desc(), AdminAction.id.desc())
            .limit(limit)
            .all()
        )

    def to_dict(self):
        """Convert action to dictionary for API responses"""
        return {
            "id": self.id,
            "admin_user": self.admin_user.username if self.admin_user else None,
            "target_user_id": self.target_user_id,
            "event_id": self.event_id,
            "event_name": self.event.name if self.event else None,
            "action_type": self.action_type,
            "action_description": self.action_description,
            "action_metadata": self.action_metadata,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
