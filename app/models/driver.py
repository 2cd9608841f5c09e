from datetime import datetime, timezone

from app import db


class Driver(db.Model):
    __tablename__ = "drivers"

    # Slug used in predictions and results, e.g. "verstappen"
    id = db.Column(db.String(40), primary_key=True)

    name = db.Column(db.String(100), nullable=False)
    number = db.Column(db.Integer)
    team = db.Column(db.String(100), index=True)
    country = db.Column(db.String(3))  # ISO alpha-3

    # Visual elements
    color = db.Column(db.String(7))  # Hex color
    image_url = db.Column(db.String(500))

    is_active = db.Column(db.Boolean, default=True)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<Driver {self.id}>"

    @staticmethod
    def known_ids():
        """Set of driver ids that may appear in picks"""
        return {
            driver_id
            for (driver_id,) in db.session.query(Driver.id).filter_by(is_active=True)
        }

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "number": self.number,
            "team": self.team,
            "country": self.country,
            "color": self.color,
            "image": self.image_url,
        }
