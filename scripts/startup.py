#!/usr/bin/env python3
"""
F1 Pick'em Startup Script

Auto-initializes the application on first container startup:
- Waits for the database
- Loads the driver line-up and race calendar
- Creates default admin user
"""

import os
import sys
import time

# Eventlet monkey patching MUST be first
import eventlet
eventlet.monkey_patch()

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set up environment
os.environ.setdefault("FLASK_APP", "run.py")
os.environ.setdefault("FLASK_ENV", "production")

from sqlalchemy.exc import OperationalError  # noqa: E402

from app import create_app, db  # noqa: E402
from app.models import User  # noqa: E402
from app.utils.seed_data import seed_calendar, seed_drivers  # noqa: E402


def wait_for_db(app, max_retries=30):
    """Wait for database to be ready"""
    print("Waiting for database connection...")

    for i in range(max_retries):
        try:
            with app.app_context():
                result = db.session.execute(db.text("SELECT 1"))
                result.fetchone()
                print("Database connected!")
                return True
        except OperationalError as e:
            if i < max_retries - 1:
                print(f"Attempt {i+1}/{max_retries} failed, retrying in 2s...")
                print(f"   Error: {str(e)}")
                time.sleep(2)
            else:
                print(f"Database connection failed after {max_retries} attempts: {e}")
                return False
    return False


def create_default_admin():
    """Create default admin user if none exists"""
    admin = User.query.filter_by(is_admin=True).first()

    if admin:
        print(f"Admin user already exists ({admin.username})")
        return admin

    print("Creating default admin user...")

    admin = User(
        username="admin",
        email=os.environ.get("DEFAULT_ADMIN_EMAIL", "admin@f1pickem.local"),
        display_name="Administrador",
        is_active=True,
        is_admin=True,
        rank=User.next_rank(),
        rank_history=[],
    )

    # Use environment variable for admin password, fallback to secure default
    admin_password = os.environ.get("DEFAULT_ADMIN_PASSWORD", "ChangeMe123!")
    admin.set_password(admin_password)

    db.session.add(admin)
    db.session.commit()

    print("Created default admin user (username: admin)")
    print("WARNING: Please change the default password after first login!")
    if not os.environ.get("DEFAULT_ADMIN_PASSWORD"):
        print("WARNING: Using default password. Set DEFAULT_ADMIN_PASSWORD environment variable for security!")

    return admin


def initialize_season_data():
    """Load drivers and calendar (idempotent)"""
    drivers_created, drivers_updated = seed_drivers()
    events_created, events_skipped = seed_calendar()
    db.session.commit()

    print(f"Drivers: {drivers_created} created, {drivers_updated} updated")
    print(f"Events: {events_created} created, {events_skipped} already present")


def main():
    app = create_app(os.environ.get("FLASK_CONFIG", "production"))

    if not wait_for_db(app):
        sys.exit(1)

    with app.app_context():
        db.create_all()
        initialize_season_data()
        create_default_admin()

    print("Startup complete")


if __name__ == "__main__":
    main()
